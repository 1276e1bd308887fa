import logging

from ldap_verify.env_settings import EnvSettings
from ldap_verify.log_config import setup_logging
from ldap_verify.services import VerificationService, directory_cfg_from_env


def make_env(**overrides) -> EnvSettings:
    values = {
        "LDAP_SERVER": "ldaps://ldap.co.com:636",
        "LDAP_BIND_DN": "cn=svc,dc=co,dc=com",
        "LDAP_PASSWORD": "pw",
        "LDAP_BASE_DN": "dc=co,dc=com",
    }
    values.update(overrides)
    return EnvSettings(**values)


def test_directory_config_from_env():
    cfg = directory_cfg_from_env(make_env(LDAP_STARTTLS=True, LDAP_CA_CERT_FILE=" /ca.pem "))
    assert cfg.server_uri == "ldaps://ldap.co.com:636"
    assert cfg.starttls is True
    assert cfg.tls_validate is True
    assert cfg.ca_cert_file == "/ca.pem"
    assert (cfg.connect_timeout, cfg.size_limit, cfg.time_limit) == (15, 50, 10)


def test_limits_are_clamped():
    cfg = directory_cfg_from_env(make_env(LDAP_CONNECT_TIMEOUT=0, LDAP_SEARCH_SIZE_LIMIT=5000, LDAP_SEARCH_TIME_LIMIT=99))
    assert (cfg.connect_timeout, cfg.size_limit, cfg.time_limit) == (1, 1000, 30)


def test_missing_settings_mean_not_configured():
    assert directory_cfg_from_env(make_env(LDAP_BASE_DN="")) is None
    assert directory_cfg_from_env(make_env(LDAP_BIND_DN="  ")) is None


def test_presence_report_hides_values():
    report = make_env(LDAP_PASSWORD="").presence_report()
    assert report == {
        "LDAP_SERVER": "SET",
        "LDAP_BIND_DN": "SET",
        "LDAP_PASSWORD": "MISSING",
        "LDAP_BASE_DN": "SET",
    }


def test_cors_origins():
    env = make_env(CORS_ALLOW_ORIGINS="https://a.co.com, ,https://b.co.com")
    assert env.cors_origins == ["https://a.co.com", "https://b.co.com"]


def test_service_from_env():
    svc = VerificationService.from_env(make_env(LDAP_STRATEGIES="user_id,email", LDAP_REQUEST_TIMEOUT=500, LDAP_EXPOSE_DIAGNOSTICS=True))
    assert svc.planner.order == ("user_id", "email")
    assert svc.request_timeout == 120
    assert svc.expose_diagnostics is True
    assert svc.matcher.base_dn == "dc=co,dc=com"


def test_file_logging(tmp_path):
    log_dir = tmp_path / "logs"
    try:
        setup_logging(level="debug", log_dir=str(log_dir), retention_days=7)
        logging.getLogger("ldap_verify.test").info("hello")
        assert (log_dir / "ldap_verify.log").exists()
        assert logging.getLogger("ldap3").level == logging.WARNING
    finally:
        setup_logging(level="WARNING")
    assert (log_dir / "ldap_verify.log").read_text(encoding="utf-8").count("hello") == 1
