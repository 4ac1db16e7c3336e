import pytest


def pytest_configure(config):
    # Register markers used across the repo without requiring external plugins.
    config.addinivalue_line("markers", "property: hypothesis-driven property test")
    config.addinivalue_line("markers", "cli: exercises the emissionctl command line")
    config.addinivalue_line("markers", "sqlite: touches an on-disk SQLite database")


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config, items):
    """
    Tag suites by module so they can be selected with -m, e.g.
    `pytest -m "not property"` for a quick run.
    """
    by_module = {
        "emission/tests/test_properties.py": pytest.mark.property,
        "emission/tests/test_cli_emissionctl.py": pytest.mark.cli,
        "emission/tests/test_state_db.py": pytest.mark.sqlite,
    }
    for item in items:
        for prefix, marker in by_module.items():
            if item.nodeid.startswith(prefix):
                item.add_marker(marker)
