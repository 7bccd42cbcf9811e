from pytest import register_assert_rewrite

register_assert_rewrite("tests.fixtures")

pytest_plugins = [
    "tests.fixtures.database",
    "tests.fixtures.flask",
    "tests.fixtures.provider",
    "tests.fixtures.services",
    "tests.fixtures.store",
    "tests.fixtures.time",
]
