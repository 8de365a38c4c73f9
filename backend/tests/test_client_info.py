import json

from telemetry.client_info import ClientInfo, browser_name, device_type, load_session_id

CHROME_DESKTOP = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)
EDGE_DESKTOP = CHROME_DESKTOP + " Edg/120.0"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 Safari/604.1"


class TestUserAgentParsing:
    def test_browsers(self):
        assert browser_name(CHROME_DESKTOP) == "Chrome"
        assert browser_name(EDGE_DESKTOP) == "Edge"
        assert browser_name(SAFARI_IPHONE) == "Safari"
        assert browser_name("curl/8.0") == "Unknown"

    def test_devices(self):
        assert device_type(CHROME_DESKTOP) == "desktop"
        assert device_type(SAFARI_IPHONE) == "mobile"
        assert device_type(SAFARI_IPAD) == "tablet"

    def test_missing_user_agent(self):
        assert ClientInfo.from_user_agent(None) == ClientInfo()


class TestSessionId:
    def test_created_once_and_reused(self, tmp_path):
        path = str(tmp_path / "state" / "client.json")
        first = load_session_id(path)
        assert load_session_id(path) == first
        with open(path) as f:
            assert json.load(f) == {"session_id": first}

    def test_corrupt_state_is_replaced(self, tmp_path):
        path = tmp_path / "client.json"
        path.write_text("{broken")
        session_id = load_session_id(str(path))
        assert session_id
        assert json.loads(path.read_text())["session_id"] == session_id
