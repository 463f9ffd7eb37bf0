import pytest


@pytest.fixture(autouse=True)
def _review_defaults(settings):
    # Pooled review unless a test opts in to per-task ownership
    settings.REVIEW_ENFORCE_ASSIGNMENT = False
    settings.REVIEW_NOTIFICATIONS_ENABLED = True
