from config import get_settings


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("BALANCE_MODE", "LIVE")
    monkeypatch.setenv("DEFINITIONS_REFRESH_SEC", "60")
    monkeypatch.setenv("PERSIST_DEFINITIONS", "true")
    monkeypatch.setenv("NETWORK", " Ethereum ")
    get_settings.cache_clear()
    try:
        st = get_settings()
        assert st.BALANCE_MODE == "live"
        assert st.DEFINITIONS_REFRESH_SEC == 60
        assert st.PERSIST_DEFINITIONS is True
        assert st.NETWORK == "ethereum"
    finally:
        get_settings.cache_clear()


def test_settings_defaults(monkeypatch):
    for key in ("BALANCE_MODE", "DEFINITIONS_REFRESH_SEC", "PERSIST_DEFINITIONS", "RPC_TIMEOUT_SEC"):
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    try:
        st = get_settings()
        assert st.BALANCE_MODE == "cached"
        assert st.DEFINITIONS_REFRESH_SEC == 300
        assert st.PERSIST_DEFINITIONS is False
        assert st.RPC_TIMEOUT_SEC == 30
    finally:
        get_settings.cache_clear()
