"""Tests for the declarative markers."""

from orderedrunner.markers import (
    ParameterRecord,
    file_parameters,
    first,
    get_markers,
    ignore,
    is_parallel,
    last,
    parallel_execution,
    parameter_record,
    parameters,
    test,
)


class TestMethodMarkers:
    """Tests for test, first, last and ignore."""

    def test_unmarked_function_has_no_markers(self):
        """Test that plain functions carry no metadata."""

        def plain(self):
            pass

        assert get_markers(plain) is None

    def test_role_markers(self):
        """Test that role markers set their flags."""

        @first
        def a(self):
            pass

        @last
        def b(self):
            pass

        @test
        def c(self):
            pass

        assert get_markers(a).first and get_markers(a).is_test
        assert get_markers(b).last and get_markers(b).is_test
        assert get_markers(c).test and not get_markers(c).first

    def test_ignore_bare_and_with_reason(self):
        """Test both forms of the ignore marker."""

        @ignore
        @test
        def bare(self):
            pass

        @ignore("flaky")
        @test
        def reasoned(self):
            pass

        assert get_markers(bare).ignored
        assert get_markers(bare).ignore_reason == ""
        assert get_markers(reasoned).ignored
        assert get_markers(reasoned).ignore_reason == "flaky"


class TestParameterMarkers:
    """Tests for parameter_record, parameters and file_parameters."""

    def test_records_keep_declaration_order(self):
        """Test that stacked records are stored top to bottom."""

        @parameter_record("1", "Hello", "true")
        @parameter_record("2", "Hi", "false")
        def method(self, a, b, c):
            pass

        records = get_markers(method).records
        assert [r.values for r in records] == [("1", "Hello", "true"), ("2", "Hi", "false")]

    def test_record_fields(self):
        """Test that every record field is kept."""

        class Source:
            pass

        @parameter_record(source_types=[Source], method_name="m", lambda_field_name="f")
        def method(self):
            pass

        record = get_markers(method).records[0]
        assert record == ParameterRecord(
            values=(), source_types=(Source,), method_name="m", lambda_field_name="f"
        )

    def test_parameters_splits_rows(self):
        """Test that comma separated rows become one record each."""

        @parameters("1, Hello, true", "2,Hi,false")
        def method(self, a, b, c):
            pass

        records = get_markers(method).records
        assert [r.values for r in records] == [("1", "Hello", "true"), ("2", "Hi", "false")]

    def test_bare_parameters_requests_default_lookup(self):
        """Test that @parameters() asks for the parametersFor method."""

        @parameters()
        def method(self, a):
            pass

        (record,) = get_markers(method).records
        assert record.default_lookup
        assert record.values == ()

    def test_parameters_with_source(self):
        """Test that a source class becomes a record with source types."""

        class Source:
            pass

        @parameters(source=Source)
        def method(self, a):
            pass

        (record,) = get_markers(method).records
        assert record.source_types == (Source,)
        assert not record.default_lookup

    def test_file_parameters(self):
        """Test that file declarations are recorded."""

        @file_parameters("file:data.csv")
        def method(self, a):
            pass

        markers = get_markers(method)
        assert markers.files[0].locator == "file:data.csv"
        assert markers.declares_parameters


class TestParallelExecution:
    """Tests for the class level parallel_execution marker."""

    def test_default_is_sequential(self):
        """Test that unmarked classes run sequentially."""

        class Plain:
            pass

        assert is_parallel(Plain) is False

    def test_enabled_by_default_when_marked(self):
        """Test that the marker enables parallelism by default."""

        @parallel_execution()
        class Marked:
            pass

        assert is_parallel(Marked) is True

    def test_inherited(self):
        """Test that subclasses inherit the setting."""

        @parallel_execution(True)
        class Base:
            pass

        class Child(Base):
            pass

        assert is_parallel(Child) is True

    def test_disabled(self):
        """Test explicitly disabling parallelism."""

        @parallel_execution(False)
        class Marked:
            pass

        assert is_parallel(Marked, default=True) is False
