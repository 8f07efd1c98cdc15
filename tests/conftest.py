pytest_plugins = ["couch_kernel.testing.fixtures"]
