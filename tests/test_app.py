class TestCreateApp:
    def test_only_api_and_media_routes_are_registered(self, app):
        rules = {r.rule for r in app.url_map.iter_rules() if r.endpoint != "static"}
        assert all(rule.startswith(("/api/", "/api", "/media/")) for rule in rules), rules
        assert "/favicon.ico" not in rules
        assert "/__routes" not in rules

    def test_unknown_media_bucket_is_404(self, client):
        assert client.get("/media/private/anything.pdf").status_code == 404
