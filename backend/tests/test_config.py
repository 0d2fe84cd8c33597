from eventflow.core.config import Settings


def test_cors_origins_accept_comma_and_json_lists():
    assert Settings(cors_origins="http://a.test, http://b.test").cors_origins == ["http://a.test", "http://b.test"]
    assert Settings(cors_origins='["http://c.test"]').cors_origins == ["http://c.test"]


def test_log_level_is_normalised():
    assert Settings(log_level=" debug ").log_level == "DEBUG"


def test_certificate_subject_template():
    settings = Settings()
    assert settings.certificate_email_subject.format(event_name="I Semana") == "Certificates for I Semana"
