"""Basic tests for gofr_backup package."""


def test_import_gofr_backup():
    """Test that gofr_backup can be imported."""
    import gofr_backup

    assert hasattr(gofr_backup, "__version__")
    assert gofr_backup.__version__ == "1.0.0"


def test_version_format():
    """Test that version follows semver format."""
    import gofr_backup

    parts = gofr_backup.__version__.split(".")
    assert len(parts) == 3
    assert all(p.isdigit() for p in parts)


def test_public_exports():
    """Test that everything in __all__ is importable from the package root."""
    import gofr_backup

    for name in gofr_backup.__all__:
        assert hasattr(gofr_backup, name), name
