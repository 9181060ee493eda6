import os
import tempfile

from bromato.core.config import BromatoConfig


def test_defaults():
    config = BromatoConfig()

    assert config.root_selector == "body"
    assert config.wait_for_timeout_ms == 5000
    assert config.headless is False
    assert config.upload_dir == os.path.join(tempfile.gettempdir(), "bromato-uploads")
    assert config.user_data_dir.endswith(os.path.join(".bromato", "browser-user-data"))


def test_from_env_parses_types():
    config = BromatoConfig.from_env({
        "BROMATO_UPLOAD_DIR": "/srv/uploads",
        "BROMATO_WAIT_FOR_TIMEOUT_MS": "750",
        "BROMATO_HEADLESS": "true",
        "UNRELATED": "x",
    })

    assert config.upload_dir == "/srv/uploads"
    assert config.wait_for_timeout_ms == 750
    assert config.headless is True


def test_overrides_win_unless_none():
    config = BromatoConfig.from_env(
        {"BROMATO_ROOT_SELECTOR": "main", "BROMATO_HEADLESS": "1"},
        root_selector="html",
        headless=None,
    )

    assert config.root_selector == "html"
    assert config.headless is True
