# test_env.py
from __future__ import annotations

import os

from macdevsetup.env import EnvironmentContext


def test_from_os_splits_path():
    env = EnvironmentContext.from_os({"PATH": os.pathsep.join(["/usr/bin", "", "/bin"]), "HOME": "/h"})
    assert env.path == ("/usr/bin", "/bin")
    assert env.get("HOME") == "/h"
    assert "PATH" not in env.variables


def test_prepend_path_moves_existing_entry_to_front():
    env = EnvironmentContext(path=("/a", "/b", "/c"))
    assert env.prepend_path("/b").path == ("/b", "/a", "/c")
    assert env.prepend_path("/new").path == ("/new", "/a", "/b", "/c")
    # original untouched
    assert env.path == ("/a", "/b", "/c")


def test_with_variable_path_is_special():
    env = EnvironmentContext().with_variable("PATH", "/x:/y")
    assert env.path == ("/x", "/y")
    assert env.get("PATH") == "/x:/y"


def test_with_homebrew_matches_shellenv():
    env = EnvironmentContext(path=("/usr/bin",)).with_homebrew("/opt/homebrew")

    assert env.path[:2] == ("/opt/homebrew/bin", "/opt/homebrew/sbin")
    assert env.brew_prefix == "/opt/homebrew"
    assert env.get("HOMEBREW_CELLAR") == "/opt/homebrew/Cellar"
    assert env.get("HOMEBREW_REPOSITORY") == "/opt/homebrew"


def test_with_homebrew_intel_repository():
    env = EnvironmentContext().with_homebrew("/usr/local")
    assert env.get("HOMEBREW_REPOSITORY") == "/usr/local/Homebrew"


def test_as_environ_includes_path():
    env = EnvironmentContext(variables={"A": "1"}, path=("/p",))
    assert env.as_environ() == {"A": "1", "PATH": "/p"}
