import os

from cachetools import cached
from dotenv import find_dotenv, load_dotenv

from enkit.config.logger import logging_setup
from enkit.config.settings import (
    env_flag,
    global_settings,
    SANDBOX_ENV_VAR,
    TOKEN_ENV_VAR,
    update_global_settings,
)
from enkit.errors import SetupError


@cached(cache={})
def setup():
    """
    One-time setup of logging and API keys. Idempotent.
    """

    logging_setup()

    api_setup()


def api_setup() -> str | None:
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
        # The sandbox flag may come from the .env file too.
        if SANDBOX_ENV_VAR in os.environ:
            with update_global_settings() as settings:
                settings.sandbox = env_flag(SANDBOX_ENV_VAR)
    return dotenv_path


TOKEN_HELP = f"""
To get a developer token:
1. Go to https://dev.evernote.com/doc/
2. Sign in with your Evernote account
3. Generate a developer token
4. Set it: export {TOKEN_ENV_VAR}="your-token-here" (or add it to a .env file)
"""


def get_token() -> str:
    """
    Read the access token from the environment. Callers pass the result explicitly
    to the note store.
    """
    token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if not token:
        raise SetupError(f"{TOKEN_ENV_VAR} environment variable is not set.\n{TOKEN_HELP}")
    return token


## Tests


def test_get_token(monkeypatch):
    monkeypatch.setenv(TOKEN_ENV_VAR, " S=s1:U=abc ")
    assert get_token() == "S=s1:U=abc"

    monkeypatch.delenv(TOKEN_ENV_VAR)
    try:
        get_token()
        assert False
    except SetupError as e:
        assert TOKEN_ENV_VAR in str(e)


def test_api_setup_reads_sandbox_flag(monkeypatch, tmp_path):
    (tmp_path / ".env").write_text(f"{SANDBOX_ENV_VAR}=Yes\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(SANDBOX_ENV_VAR, raising=False)
    original = global_settings().sandbox
    try:
        dotenv_path = api_setup()
        assert dotenv_path and dotenv_path.endswith(".env")
        assert global_settings().sandbox is True
    finally:
        monkeypatch.delenv(SANDBOX_ENV_VAR, raising=False)
        with update_global_settings() as settings:
            settings.sandbox = original
