from only4u.models import User


class TestCreateAdmin:
    def test_creates_admin_that_can_log_in(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-admin", "--email", "Boss@Only4U.test", "--password", "admin-pass-1"])
        assert result.exit_code == 0, result.output
        assert "Admin ready: boss@only4u.test" in result.output

        with app.app_context():
            user = User.query.filter_by(email="boss@only4u.test").one()
            assert user.role == "admin"

        resp = app.test_client().post("/api/auth/login", json={"email": "boss@only4u.test", "password": "admin-pass-1"})
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "admin"

    def test_existing_account_needs_force(self, app, user_id):
        from .conftest import USER_EMAIL

        runner = app.test_cli_runner()
        result = runner.invoke(args=["create-admin", "--email", USER_EMAIL, "--password", "new-pass-123"])
        assert "already exists" in result.output
        with app.app_context():
            assert User.query.filter_by(email=USER_EMAIL).one().role == "user"

        result = runner.invoke(args=["create-admin", "--email", USER_EMAIL, "--password", "new-pass-123", "--force"])
        assert result.exit_code == 0, result.output
        with app.app_context():
            user = User.query.filter_by(email=USER_EMAIL).one()
            assert user.role == "admin"
            assert user.check_password("new-pass-123")
