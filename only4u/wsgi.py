# For gunicorn: gunicorn only4u.wsgi:app
from only4u.app import create_app

app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
