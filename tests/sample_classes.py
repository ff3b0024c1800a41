"""Test classes driven by the orderedrunner test suite."""

import threading
import time

from orderedrunner import (
    file_parameters,
    first,
    ignore,
    last,
    parallel_execution,
    parameter_record,
    parameters,
    test,
)
from orderedrunner.core.extractor import EXHAUSTED


class UpperCaseProvider:
    @staticmethod
    def provide_upper_case_strings():
        return [("ONE", "NONE"), ("TWO", "TWOFLOUR")]


class LowerCaseProvider:
    @staticmethod
    def provide_lower_case_strings():
        return (("three", "her"), ("four", "flour"), ("five", "alive"))


class BaseProvider:
    @staticmethod
    def provide_from_base():
        return [("base",)]


class DerivedProvider(BaseProvider):
    @staticmethod
    def provide_from_derived():
        return [("derived",)]

    @classmethod
    def provide_from_classmethod(cls):
        return [(cls.__name__,)]


class InstanceProvider:
    def provide_values(self):
        return [("never",)]


class ShapeProvider:
    @staticmethod
    def provide_array_of_arrays():
        return [["a"], ["b"]]

    @staticmethod
    def provide_sequence_of_tuples():
        return (row for row in [("c",), ("d",)])

    @staticmethod
    def provide_sequence_of_scalars():
        return iter(["e", "f"])


class BadShapeProvider:
    @staticmethod
    def provide_number():
        return 42


class EmptyProvider:
    pass


class Countdown:
    """Pull function handing out a fixed list, then EXHAUSTED."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return EXHAUSTED


def common_characters(left: str, right: str) -> int:
    return len(set(left) & set(right))


@parallel_execution(False)
class GreetingTests:
    """Every parameter source, all tests expected to pass."""

    @first
    def opening(self):
        assert True

    @test
    @parameter_record("1", "Hello", "true")
    @parameter_record("2", "Hi", "false")
    def greets(self, number: int, greeting: str, truth: bool):
        assert number < 3
        assert greeting.startswith("H")
        assert truth or len(greeting) < 3

    @test
    @parameters("3, Hey", "4, Howdy")
    def counts(self, number: int, greeting: str):
        assert number > 2
        assert greeting.startswith("H")

    @test
    @parameters(source=UpperCaseProvider)
    @parameter_record(source_types=[LowerCaseProvider])
    def shares_characters(self, first_word: str, second_word: str):
        assert common_characters(first_word, second_word) >= 3

    @test
    @parameters()
    def fourth_test(self, number: int, even: bool):
        assert (number % 2 == 0) == even

    def parametersForFourth_test(self):
        return [(i, i % 2 == 0) for i in range(1, 10)]

    @test
    @parameter_record(method_name="small_numbers, more_numbers")
    def is_small(self, number: int):
        assert number < 10

    @staticmethod
    def small_numbers():
        return [1, 2, 3]

    @classmethod
    def more_numbers(cls):
        return [[4], [5]]

    @test
    @parameter_record(lambda_field_name="squares_supplier")
    def squares(self, number: int, square: int):
        assert number * number == square

    @staticmethod
    def squares_supplier():
        yield (2, 4)
        yield (3, 9)

    @test
    @file_parameters("classpath:resources/greetings.csv")
    def from_file(self, number: int, greeting: str):
        assert greeting.startswith("H")

    @test
    def plain(self):
        assert 1 + 1 == 2

    @ignore("not ready")
    @test
    def skipped(self):
        raise AssertionError("ignored tests never run")

    @last
    def closing(self):
        assert True


class BrokenTests:
    """One passing, one failing and one erroring test."""

    @test
    def passes(self):
        assert True

    @test
    def fails(self):
        assert 1 == 2, "one is not two"

    @test
    def errors(self):
        raise ValueError("boom")


class DoubleFirstTests:
    @first
    def one(self):
        pass

    @first
    def two(self):
        pass

    @test
    def normal(self):
        pass


class MisconfiguredTests:
    """A method whose parameters resolve to nothing next to a healthy one."""

    @test
    @parameter_record(method_name="does_not_exist")
    def nothing_to_run(self, value):
        raise AssertionError("never runs")

    @test
    def healthy(self):
        assert True


def make_ordered_class(parallel: bool = True, delays=(0.08, 0.02, 0.05, 0.01), fail_first=False):
    """Build a fresh class with one first, four normal and one last test.

    Each test appends its name to ``Ordered.log`` when it finishes.
    """
    log = []
    lock = threading.Lock()

    def record(name):
        with lock:
            log.append(name)

    @parallel_execution(parallel)
    class Ordered:
        @first
        def before(self):
            assert not log
            record("before")
            if fail_first:
                raise AssertionError("first failed")

        @test
        def one(self):
            time.sleep(delays[0])
            record("one")

        @test
        def two(self):
            time.sleep(delays[1])
            record("two")

        @test
        def three(self):
            time.sleep(delays[2])
            record("three")

        @test
        def four(self):
            time.sleep(delays[3])
            record("four")

        @last
        def after(self):
            assert len(log) == 5
            record("after")

    Ordered.log = log
    return Ordered


class OverridingBaseProvider:
    @classmethod
    def provide_x(cls):
        return [("base",)]


class OverridingDerivedProvider(OverridingBaseProvider):
    @classmethod
    def provide_x(cls):
        return [("derived",)]


class SeparatedMapper:
    """Mapper that cannot be created without a separator."""

    def __init__(self, sep):
        self.sep = sep

    def map(self, content):
        return [tuple(line.split(self.sep)) for line in content.splitlines()]


class BadMapperTests:
    """A method whose file mapper cannot be created next to a healthy one."""

    @test
    @file_parameters("classpath:resources/greetings.csv", mapper=SeparatedMapper)
    def mapped(self, number, greeting):
        raise AssertionError("never runs")

    @test
    def healthy(self):
        assert True


class FeedTests:
    """Pull function assigned per instance, starting over for every instance."""

    def __init__(self):
        rows = iter([(1, 1), (2, 4), (3, 9)])
        self.feed = lambda: next(rows, EXHAUSTED)

    @test
    @parameter_record(lambda_field_name="feed")
    def squares(self, number: int, square: int):
        assert number * number == square
