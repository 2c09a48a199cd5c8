"""End-to-end generation tests: source in, pytest module text out."""

import pytest

from branchgen import Options, ParseError, generate
from branchgen.backend import to_snake
from branchgen.pipeline import output_filename, run_pipeline, should_skip_file

COUNTER = '''\
class Counter:
    step = 1

    def __init__(self, start: int = 0):
        self.value = start

    def bump(self, n: int):
        if n == 3:
            return self.value
        return n
'''

COUNTER_TESTS = '''\
"""Generated tests for Counter."""

import pytest

from module import Counter


class TestCounter:
    @pytest.fixture
    def target(self):
        target = Counter(2)
        return target

    def test_should_create(self, target):
        assert target

    def test_bump(self, target):
        try:
            # Test case: n == 3, with value 3
            target.bump(3)
        except Exception as err:
            print("Error in bump (1): " + str(err))
        try:
            # Test case: n == 3, with value 4
            target.bump(4)
        except Exception as err:
            print("Error in bump (2): " + str(err))
        assert target
'''

SHOP = '''\
class Shop:
    cache: Cache = None

    def __init__(self, repo: Repository, name: str):
        self.repo = repo
        self.name = name

    async def save(self, data: BinaryIO):
        self.repo.store(self.name, force=True)
        if self.cache.enabled:
            self.cache.clear()
'''


def test_counter_module_text():
    (generated,) = generate(COUNTER)
    assert generated.class_name == "Counter"
    assert generated.filename == "test_counter.py"
    assert generated.text == COUNTER_TESTS


def test_generated_modules_compile():
    for source in (COUNTER, SHOP):
        for generated in generate(source, "shop.models"):
            compile(generated.text, generated.filename, "exec")


def test_shop_module_parts():
    (generated,) = generate(SHOP, "shop.models", source_name="models.py")
    text = generated.text
    assert text.startswith('"""Generated tests for Shop (models.py)."""\n')
    assert "import asyncio\nimport io\n\nimport pytest\n\nfrom shop.models import Shop\n" in text
    assert (
        "class FakeCache:\n"
        '    """Stands in for Cache."""\n'
        "\n"
        "    enabled = None\n"
        "\n"
        "    def clear(self):\n"
        "        return None\n"
    ) in text
    assert (
        "class StubRepository:\n"
        '    """Stands in for Repository."""\n'
        "\n"
        "    def store(self, arg1, **kwargs):\n"
        "        return None\n"
    ) in text
    assert "        target = Shop(StubRepository(), 'abc')\n        target.cache = FakeCache()\n" in text
    assert "target.cache.enabled = True" not in text
    assert "asyncio.run(target.save(io.BytesIO(b'fakedata')))" in text
    assert 'print("Error in save (2): " + str(err))' in text


GAUGE = '''\
class Gauge:
    __sensor: Sensor = None

    def __init__(self):
        self.__level = 0

    @property
    def level(self) -> int:
        return self.__level

    @level.setter
    def level(self, value: int):
        if self.__level == 9:
            self.__sensor.reset()
        self.__level = value
'''


def test_private_fields_and_properties():
    (generated,) = generate(GAUGE)
    text = generated.text
    compile(text, generated.filename, "exec")
    assert "        target._Gauge__sensor = FakeSensor()\n" in text
    assert "            target.level\n" in text
    assert "            target._Gauge__level = 9\n            target.level = 2\n" in text
    assert "target.__level" not in text


def test_stubs_list_only_used_members():
    source = (
        "class A:\n"
        "    repo: Repository = None\n"
        "    def f(self):\n"
        "        self.repo.load()\n"
    )
    (generated,) = generate(source)
    stub = generated.text.split("class FakeRepository:")[1].split("class TestA")[0]
    assert "def load(self):" in stub
    assert "save" not in stub


def test_one_module_per_class():
    source = "class B:\n    pass\n\nclass A:\n    pass\n"
    assert [g.filename for g in generate(source)] == ["test_b.py", "test_a.py"]


def test_output_is_deterministic():
    first = [g.text for g in generate(SHOP, "shop")]
    second = [g.text for g in generate(SHOP, "shop")]
    assert first == second


def test_test_names_are_unique():
    source = (
        "class A:\n"
        "    def run(self):\n"
        "        pass\n"
        "    def _run(self):\n"
        "        pass\n"
        "    def should_create(self):\n"
        "        pass\n"
    )
    (generated,) = generate(source)
    assert "def test_run(self, target):" in generated.text
    assert "def test_run_2(self, target):" in generated.text
    assert "def test_should_create_2(self, target):" in generated.text


def test_failed_method_records_comment(monkeypatch):
    import branchgen.middleend.suite as suite_module

    def broken(method, options=None):
        raise RuntimeError("nope")

    monkeypatch.setattr(suite_module, "compose_method", broken)
    (generated,) = generate("class A:\n    def f(self):\n        pass\n")
    assert "    def test_f(self, target):\n        # no scenarios: RuntimeError: nope\n        assert target\n" in (
        generated.text
    )


def test_custom_target_name():
    (generated,) = generate(COUNTER, options=Options(target_name="subject"))
    assert "def subject(self):" in generated.text
    assert "subject.bump(3)" in generated.text


def test_parse_error_raises():
    with pytest.raises(ParseError):
        generate("class A\n")


def test_run_pipeline_parse_error(capsys):
    code, output = run_pipeline("class A:\n    x = 1 +\n", "module", None)
    assert code == 1
    assert output == ""
    assert capsys.readouterr().err.startswith("error:2:")


def test_run_pipeline_phase_dump():
    code, output = run_pipeline("class A:\n    pass\n", "pkg.a", "ir")
    assert code == 0
    assert '"module": "pkg.a"' in output


@pytest.mark.parametrize(
    "name,expected",
    [("Counter", "counter"), ("HTTPServer", "http_server"), ("myClass", "my_class"), ("_Private", "private")],
)
def test_to_snake(name, expected):
    assert to_snake(name) == expected


def test_output_filename():
    assert output_filename("OrderService") == "test_order_service.py"


def test_skip_directive():
    assert should_skip_file("# branchgen: skip\nclass A:\n    pass\n")
    assert not should_skip_file("class A:\n    pass\n")
    assert not should_skip_file("\n\n\n\n\n# branchgen: skip\n")
