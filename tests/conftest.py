pytest_plugins = ["hubgate.testing.conftest"]
