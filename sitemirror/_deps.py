"""Startup check for the crawler's third-party stack, with an optional pip install."""

import importlib
import os
import subprocess
import sys

# "0", "false" or "no" turns the install off
AUTO_INSTALL_ENV = "SITEMIRROR_AUTO_INSTALL_DEPS"

# import name -> distribution name
REQUIRED = {
    "httpx": "httpx",
    "bs4": "beautifulsoup4",
    "lxml": "lxml",
    "tqdm": "tqdm",
}


def auto_install_enabled() -> bool:
    return os.environ.get(AUTO_INSTALL_ENV, "1").lower() not in ("0", "false", "no")


def missing_required() -> list[str]:
    """Distribution names of required packages that fail to import."""
    missing = []
    for module, dist in REQUIRED.items():
        try:
            importlib.import_module(module)
        except ImportError:
            missing.append(dist)
    return missing


def install(dists: list[str]) -> bool:
    """pip install dists into the running interpreter. Returns success."""
    print(f"Installing missing dependencies: {', '.join(dists)}", file=sys.stderr)
    try:
        subprocess.run([sys.executable, "-m", "pip", "install", "-q", *dists], check=True)
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        print(f"Install failed: {e}", file=sys.stderr)
        return False
    importlib.invalidate_caches()
    return True


def check_required() -> None:
    """Return if the stack imports (installing it first when allowed); otherwise exit 1."""
    missing = missing_required()
    if not missing:
        return
    if auto_install_enabled() and install(missing):
        missing = missing_required()
        if not missing:
            return
    print(
        f"sitemirror needs {', '.join(missing)}. Install with `pip install -e .` "
        f"(set {AUTO_INSTALL_ENV}=1 to let sitemirror do it).",
        file=sys.stderr,
    )
    sys.exit(1)
