from src.core.config import Settings


class TestSettings:
    def test_plain_sqlite_url_gets_async_driver(self):
        settings = Settings(database_url="sqlite:///./local.sqlite")
        assert settings.database_url == "sqlite+aiosqlite:///./local.sqlite"

    def test_cors_origins_from_comma_string(self):
        settings = Settings(cors_allowed_origins="http://a.test, http://b.test,")
        assert settings.cors_allowed_origins == ["http://a.test", "http://b.test"]

    def test_report_defaults(self):
        settings = Settings()
        assert settings.upcoming_days_default == 3
        assert settings.critical_overdue_days == 5
        assert settings.critical_alert_days == 7
        assert settings.group_capacity == 20
