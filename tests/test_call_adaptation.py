import unittest

from lazywire import as_function, create_container, create_deep_proxy, get_from_container


class TestBareCallableArity(unittest.TestCase):
    def test_zero_argument_callable_is_called_without_arguments(self):
        view = create_deep_proxy({"answer": lambda: 42})
        assert view.answer == 42

    def test_single_argument_callable_receives_root(self):
        source = {"name": "Ann", "greeting": lambda root: f"hi {root['name']}"}
        assert create_deep_proxy(source).greeting == "hi Ann"

    def test_variadic_callable_receives_root_and_key(self):
        source = {"echo": lambda *args: args}
        root, key = create_deep_proxy(source).echo
        assert root is source
        assert key == "echo"

    def test_keyword_only_parameters_are_left_to_defaults(self):
        def configured(root, *, retries=3):
            return retries

        assert create_deep_proxy({"retries": configured}).retries == 3

    def test_class_in_definition_is_constructed_with_root(self):
        class Settings:
            def __init__(self, root):
                self.name = root["name"]

        container = create_container({"name": "svc", "settings": Settings})
        assert isinstance(container["settings"], Settings)
        assert container["settings"].name == "svc"

    def test_callable_instance_is_invoked(self):
        class Factory:
            def __call__(self, root, key):
                return f"{key}:{len(root)}"

        assert create_deep_proxy({"made": Factory(), "other": 1}).made == "made:2"


class TestRegistrationCallSignature(unittest.TestCase):
    def test_registration_resolves_without_key(self):
        registration = as_function(lambda deps: deps.port)
        assert registration({"port": 8080}) == 8080

    def test_accessor_passes_only_container(self):
        def read(container, key=None):
            return key

        assert get_from_container("read")({"read": read}) is None
