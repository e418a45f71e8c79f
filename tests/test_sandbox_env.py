from loopforge.executors.local import LocalPythonExecutor
from loopforge.safety.sandbox import sanitize_env


def test_sanitize_env_drops_secrets_and_unknown_keys():
    env = {
        "PATH": "/usr/bin",
        "HOME": "/home/me",
        "OPENAI_API_KEY": "secret-value",
        "SECRET_TOKEN": "x",
        "RANDOM_SETTING": "1",
    }
    assert sanitize_env(env) == {"PATH": "/usr/bin", "HOME": "/home/me"}


def test_passthrough_env_is_allowed(monkeypatch):
    monkeypatch.setenv("SANDBOX_PASSTHROUGH_ENV", "RANDOM_SETTING, OPENAI_API_KEY")
    env = {"RANDOM_SETTING": "1", "OPENAI_API_KEY": "secret-value"}
    assert sanitize_env(env) == {"RANDOM_SETTING": "1"}


def test_executed_code_cannot_read_api_key(tmp_path, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "secret-value")
    executor = LocalPythonExecutor(timeout_seconds=20, workspace_dir=str(tmp_path))
    result = executor.execute("import os\nfinal_answer(os.environ.get('OPENAI_API_KEY'))", {})
    assert result.error is None
    assert result.has_output is True
    assert result.output is None
