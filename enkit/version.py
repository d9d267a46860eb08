from importlib import metadata
from pathlib import Path
import tomllib

from enkit.config.settings import APP_NAME


def get_pyproject_version() -> str:
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    pyproject_data = tomllib.loads(pyproject_path.read_text())
    return pyproject_data["project"]["version"]


def get_version() -> str:
    try:
        # Get the version from the installed package metadata.
        return metadata.version(APP_NAME)
    except metadata.PackageNotFoundError:
        # For development: running from a source checkout.
        return get_pyproject_version()


def get_version_name() -> str:
    return f"{APP_NAME} {get_version()}"


if __name__ == "__main__":
    print(get_version_name())
