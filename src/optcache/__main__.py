"""Allow ``python -m optcache``."""

from optcache.cli import app

app()
