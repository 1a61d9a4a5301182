from tests.fixtures.login_events import lookup, service, store  # noqa: F401
