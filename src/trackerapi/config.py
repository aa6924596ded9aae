"""Profiles, directories, and where the tracker password comes from.

A *profile* is one tracker account: the site root, the username, how to
obtain the password, and the cache and cookie settings used against that
site. Profiles are JSON files under the config directory; the password is
never one of their fields.

Directories follow XDG on Linux/BSD and fall back to ``~/.trackerapi/``
elsewhere:

========  ==============================  ===========================
kind      XDG location                    fallback
========  ==============================  ===========================
config    ``$XDG_CONFIG_HOME/trackerapi``  ``~/.trackerapi``
cache     ``$XDG_CACHE_HOME/trackerapi``   ``~/.trackerapi/cache``
data      ``$XDG_DATA_HOME/trackerapi``    ``~/.trackerapi/logs``
========  ==============================  ===========================

Each profile gets its own store directory under the cache directory,
holding both its response cache and its saved session cookies.

The active profile is picked by :func:`resolve_config`, first match wins:
``--profile``, ``TRACKERAPI_PROFILE``, ``./trackerapi.json``, the global
default, and finally the only profile when exactly one exists.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import re
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterator, Optional

from trackerapi.exceptions import ConfigError
from trackerapi.models import GlobalConfig, Profile

_APP_NAME = "trackerapi"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "trackerapi.json"

ENV_PROFILE = "TRACKERAPI_PROFILE"
ENV_BASE_URL = "TRACKERAPI_BASE_URL"

# kind -> (XDG variable, default under $HOME, subdirectory of the fallback root)
_DIR_LAYOUT: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "logs"),
}

# Profile names become file and directory names.
_PROFILE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


# --- Directories ---


def _is_xdg_platform() -> bool:
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_segments, fallback_sub = _DIR_LAYOUT[kind]
    if _is_xdg_platform():
        root = os.environ.get(env_var, "")
        path = Path(root) if root else Path.home().joinpath(*home_segments)
        path = path / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
        if fallback_sub:
            path = path / fallback_sub
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json`` and ``profiles/``."""
    return _app_dir("config")


def get_cache_dir() -> Path:
    """Directory holding every profile's store.

    Deleting it costs one re-login and a cold response cache, nothing more.
    """
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for crash logs."""
    return _app_dir("data")


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_store_dir(profile: Profile) -> Path:
    """Return the store directory for *profile*'s response cache and cookies."""
    path = get_cache_dir() / _checked_name(profile.name)
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Files ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a fsynced temp file in the same directory.

    Leaves no temp file behind on failure.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def _read_json(path: Path, what: str, parse: Callable[[Any], Any] = lambda data: data) -> Any:
    """Read *path* as JSON and hand it to *parse*; any failure is a ConfigError."""
    try:
        return parse(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {what} at {path}: {exc}") from exc


def _write_json(path: Path, data: Any) -> None:
    _atomic_write(path, json.dumps(data, indent=2) + "\n")


# --- Global config ---


def load_global_config() -> GlobalConfig:
    """Load ``config.json``, or defaults when it does not exist.

    Raises:
        ConfigError: The file is not valid JSON or not a valid config.
    """
    path = get_config_dir() / _CONFIG_FILENAME
    if not path.is_file():
        return GlobalConfig()
    return _read_json(path, "global config", GlobalConfig.model_validate)


def save_global_config(config: GlobalConfig) -> None:
    _write_json(get_config_dir() / _CONFIG_FILENAME, config.model_dump(mode="json"))


# --- Profiles ---


def _checked_name(name: str) -> str:
    if not _PROFILE_NAME.match(name):
        raise ConfigError(
            f"Invalid profile name '{name}': use letters, digits, '.', '_' or '-'"
        )
    return name


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{_checked_name(name)}.json"


def _existing_profile_path(name: str) -> Path:
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigError(f"Profile '{name}' not found at {path}")
    return path


def list_profiles() -> list[str]:
    """Names of all saved profiles, sorted."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> Profile:
    """Load the profile called *name*.

    Raises:
        ConfigError: The name is invalid, the profile does not exist, or
            its file does not validate.
    """
    path = _existing_profile_path(name)
    return _read_json(path, f"profile '{name}'", Profile.model_validate)


def save_profile(profile: Profile) -> None:
    _write_json(_profile_path(profile.name), profile.model_dump(mode="json"))


def delete_profile(name: str) -> None:
    """Delete a profile file. Its store directory is left alone.

    Raises:
        ConfigError: The profile does not exist.
    """
    _existing_profile_path(name).unlink()


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./trackerapi.json``, which may pin ``default_profile`` for a directory."""
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    return _read_json(path, "project config")


# --- Active profile ---


def _profile_candidates(
    cli_profile: Optional[str], global_cfg: GlobalConfig
) -> Iterator[Optional[str]]:
    yield cli_profile
    yield os.environ.get(ENV_PROFILE) or None
    project = load_project_config()
    yield project.get("default_profile") if project else None
    yield global_cfg.default_profile
    if global_cfg.auto_select_single_profile:
        profiles = list_profiles()
        yield profiles[0] if len(profiles) == 1 else None


def resolve_config(
    cli_profile: Optional[str] = None,
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> tuple[GlobalConfig, Optional[Profile]]:
    """Work out the effective global config and the active profile.

    The profile's ``base_url`` can be overridden by *cli_base_url*, then by
    ``TRACKERAPI_BASE_URL``, which is how a mirror of the same site is
    reached without editing the profile.

    Returns:
        ``(global_config, profile)``; the profile is ``None`` when nothing
        selects one.
    """
    global_cfg = load_global_config()
    if cli_format is not None:
        global_cfg.output.format = cli_format

    name = next((n for n in _profile_candidates(cli_profile, global_cfg) if n), None)
    if name is None:
        return global_cfg, None

    profile = load_profile(name)
    base_url = cli_base_url or os.environ.get(ENV_BASE_URL)
    if base_url:
        profile.base_url = base_url
    return global_cfg, profile


# --- Password sources ---


def _password_from_env(var_name: str, source: str, prompt: str) -> str:
    value = os.environ.get(var_name)
    if value is None:
        raise ConfigError(f"Environment variable '{var_name}' is not set (source: {source})")
    return value


def _password_from_file(location: str, source: str, prompt: str) -> str:
    path = Path(location).expanduser()
    if not path.is_file():
        raise ConfigError(f"Credential file not found: {path} (source: {source})")
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc


def _password_from_prompt(_: str, source: str, prompt: str) -> str:
    if not sys.stdin.isatty():
        raise ConfigError("Cannot prompt for the password: stdin is not a TTY (source: prompt)")
    return getpass.getpass(prompt)


_PASSWORD_SOURCES: dict[str, Callable[[str, str, str], str]] = {
    "env": _password_from_env,
    "file": _password_from_file,
    "prompt": _password_from_prompt,
}


def resolve_credential(source: str, prompt: str = "Password: ") -> str:
    """Read a password from a ``password_source`` string.

    ``env:VAR`` reads an environment variable, ``file:/path`` reads a file
    (surrounding whitespace stripped) and ``prompt`` asks on the terminal
    with *prompt*.

    Raises:
        ConfigError: The source is unknown or cannot be read.
    """
    scheme, sep, argument = source.partition(":")
    reader = _PASSWORD_SOURCES.get(scheme)
    # ``prompt`` takes no argument; the other sources require one.
    if reader is None or bool(sep) == (scheme == "prompt"):
        raise ConfigError(f"Unknown credential source format: {source}")
    return reader(argument, source, prompt)
