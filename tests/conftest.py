import sys

import pytest

from config import settings as settings_module

HEADER = 'Issue key,Summary,Status,Inward issue link (Blocks),Outward issue link (Blocks),Outward issue link (Blocks)'


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Every test starts from default settings, whatever the environment holds."""
    for name in (
        'BLOCKMAP_INPUT_FILE',
        'BLOCKMAP_OUTPUT_FILE',
        'BLOCKMAP_SUPPLEMENTAL_FILE',
        'BLOCKMAP_HIDE_SUMMARY',
        'BLOCKMAP_HIDE_ORPHANS',
        'BLOCKMAP_HIGHLIGHT_COLOR',
        'BLOCKMAP_WRAP_WIDTH',
        'BLOCKMAP_LOG_FILE',
    ):
        monkeypatch.delenv(name, raising=False)
    settings_module.reset_settings()
    yield
    settings_module.reset_settings()

    # the CLI console handler points at this test's captured stdout
    cli = sys.modules.get('plantuml_utilities')
    if cli is not None and cli.ch is not None:
        cli.log.removeHandler(cli.ch)
        cli.ch = None


@pytest.fixture
def write_csv(tmp_path):
    """Write lines to a CSV file under tmp_path and return its path as a string."""

    def _write(name, *lines):
        path = tmp_path / name
        path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
        return str(path)

    return _write
