"""Shared test fixtures for the jabroni test suite."""

from __future__ import annotations

import importlib
import sys
import textwrap
import uuid
from typing import TYPE_CHECKING

import pytest

from jabroni.config.loader import reset_default_settings
from jabroni.core.ledger import default_ledger
from jabroni.core.loader import LOADED_MODULE_PREFIX

if TYPE_CHECKING:
    from pathlib import Path
    from types import ModuleType

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

BLOG_MODULE = """\
from jabroni import Extendable

LOADS = []


class Post(Extendable):
    pass


Post.named("something_from_post", "from_post")
"""

NAMED_EXTENSION = """\
# Class-level macro shared by the other extensions
LOADS.append("named")


@classmethod
def named(cls, name, value):
    def method(self):
        return value

    method.__name__ = f"named_{name}"
    setattr(cls, method.__name__, method)
"""

MAILROOM_EXTENSION = """\
# Fragment that hoists the macro it needs
from __future__ import annotations

load_extensions("named")
named("something_from_mailroom", "from_mailroom")


def mailroom(self) -> Mail:
    return "mailroom"
"""

COOL_EXTENSION = """\
# A whole reopening of Post
from __future__ import annotations


class Post:
    @classmethod
    def cool(cls) -> Cool:
        return "cool"


LOADS.append("cool")
"""

THAWED_EXTENSION = """\
# -*- coding: utf-8 -*-
from __future__ import annotations

@classmethod
def thawed_boi(cls) -> Thawed:
    return "thawed"
"""


def line_of(source: str, needle: str) -> int:
    """1-based number of the first line of *source* starting with *needle*."""
    for number, line in enumerate(source.splitlines(), start=1):
        if line.startswith(needle):
            return number
    raise AssertionError(f"{needle!r} not found")


class Project:
    """A throwaway importable project rooted in a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.module_names: list[str] = []

    def extensions_dir(self, class_name: str = "Post") -> Path:
        return self.root / class_name.lower() / "extensions"

    def write_extension(self, key: str, source: str, class_name: str = "Post") -> Path:
        directory = self.extensions_dir(class_name)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{key}.py"
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return path

    def import_module(self, source: str) -> ModuleType:
        """Write *source* under a unique module name and import it."""
        name = f"blog_{uuid.uuid4().hex[:8]}"
        (self.root / f"{name}.py").write_text(textwrap.dedent(source), encoding="utf-8")
        importlib.invalidate_caches()
        self.module_names.append(name)
        return importlib.import_module(name)

    def write_blog(self) -> None:
        self.write_extension("named", NAMED_EXTENSION)
        self.write_extension("mailroom", MAILROOM_EXTENSION)
        self.write_extension("cool", COOL_EXTENSION)
        self.write_extension("thawed", THAWED_EXTENSION)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _default_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's settings files and JABRONI_* variables out of tests."""
    for var in ("JABRONI_EXTENSIONS_DIRNAME", "JABRONI_SUFFIX", "JABRONI_ROOT", "JABRONI_VERBOSE"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", "/nonexistent-home")
    reset_default_settings()
    yield  # type: ignore[misc]
    reset_default_settings()


@pytest.fixture(autouse=True)
def _isolated_loading() -> None:
    """Forget ledger entries and required reopenings between tests."""
    yield  # type: ignore[misc]
    default_ledger().clear()
    for name in [n for n in sys.modules if n.startswith(f"{LOADED_MODULE_PREFIX}.")]:
        del sys.modules[name]


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Project:
    """Provide an importable project directory on sys.path."""
    root = tmp_path.resolve()
    monkeypatch.syspath_prepend(str(root))
    proj = Project(root)
    yield proj  # type: ignore[misc]
    for name in proj.module_names:
        sys.modules.pop(name, None)


@pytest.fixture
def blog(project: Project) -> ModuleType:
    """Import a module whose Post class autoloads the sample extensions."""
    project.write_blog()
    return project.import_module(BLOG_MODULE)
