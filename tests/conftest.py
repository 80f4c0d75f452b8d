import pytest

from image_prefix_webhook import validate


PREFIX = "registry.internal/"


@pytest.fixture()
def app():
    app = validate.create_app(
        REQUIRED_PREFIX=PREFIX,
        TESTING=True,
    )
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def prefix():
    return PREFIX
