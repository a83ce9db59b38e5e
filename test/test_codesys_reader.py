import numpy as np
import pytest

from tracedata.core import ValidationError
from tracedata.io.codesys import (
    CodesysTraceReader,
    TraceFormatError,
    _local_name,
    _parse_numbers,
)


TRACE_XML = """<?xml version="1.0" encoding="utf-8"?>
<Trace>
  <TraceVariables>
    <TraceVariable VarName="PLC_PRG.fTemp">
      <Timestamps>0,1000,2000,3000</Timestamps>
      <Values>10.5,11,12.25,11</Values>
    </TraceVariable>
    <TraceVariable VarName="PLC_PRG.bAlarm">
      <Timestamps>0,500,1500</Timestamps>
      <Values>0,1,0</Values>
    </TraceVariable>
  </TraceVariables>
</Trace>
"""


@pytest.fixture
def reader():
    return CodesysTraceReader.from_string(TRACE_XML)


class TestParsingFunctions:
    """Test the helper parsing functions."""

    def test_local_name(self):
        assert _local_name("{urn:codesys}TraceVariable") == "TraceVariable"
        assert _local_name("Values") == "Values"

    def test_parse_numbers(self):
        assert np.allclose(_parse_numbers("1, 2.5,-3", "Values"), [1.0, 2.5, -3.0])

    def test_parse_numbers_rejects_garbage(self):
        with pytest.raises(TraceFormatError):
            _parse_numbers("1,x,3", "Values")

    def test_parse_numbers_rejects_empty(self):
        with pytest.raises(TraceFormatError):
            _parse_numbers("", "Values")


class TestCodesysTraceReader:
    def test_list_variables(self, reader):
        infos = reader.list_variables()

        assert [i.name for i in infos] == ["PLC_PRG.fTemp", "PLC_PRG.bAlarm"]
        assert [i.index for i in infos] == [0, 1]
        assert [i.n_samples for i in infos] == [4, 3]

    def test_read_variable_scales_milliseconds_to_seconds(self, reader):
        ts = reader.read_variable(0)

        assert ts.name == "PLC_PRG.fTemp"
        assert np.allclose(ts.timestamps, [0.0, 1.0, 2.0, 3.0])
        assert np.allclose(ts.values, [10.5, 11.0, 12.25, 11.0])
        assert ts.max_value == 12.25

    def test_read_variable_by_name(self, reader):
        ts = reader.read_variable("PLC_PRG.bAlarm")
        assert np.allclose(ts.timestamps, [0.0, 0.5, 1.5])

    def test_default_is_first_variable(self, reader):
        assert reader.read_variable().name == "PLC_PRG.fTemp"

    def test_unknown_name_raises_keyerror(self, reader):
        with pytest.raises(KeyError):
            reader.read_variable("nope")

    def test_index_out_of_range(self, reader):
        with pytest.raises(IndexError):
            reader.read_variable(2)

    @pytest.mark.parametrize("key", [True, 1.0, None])
    def test_rejects_non_integer_key(self, reader, key):
        with pytest.raises(TypeError):
            reader.read_variable(key)

    def test_nan_values_are_kept_out_of_value_range(self):
        xml = (
            '<Trace><TraceVariable VarName="x"><Timestamps>0,1,2</Timestamps>'
            "<Values>1,nan,3</Values></TraceVariable></Trace>"
        )
        ts = CodesysTraceReader.from_string(xml).read_variable("x")
        assert np.isnan(ts.values[1])
        assert (ts.min_value, ts.max_value) == (1.0, 3.0)

    def test_custom_timestamp_scale(self):
        r = CodesysTraceReader.from_string(TRACE_XML, timestamp_scale=1.0)
        assert np.allclose(r.read_variable(1).timestamps, [0, 500, 1500])

    def test_namespaced_document(self):
        xml = (
            '<Trace xmlns="urn:codesys:trace">'
            '<TraceVariable VarName="x"><Timestamps>0,10</Timestamps>'
            "<Values>1,2</Values></TraceVariable></Trace>"
        )
        r = CodesysTraceReader.from_string(xml)
        assert np.allclose(r.read_variable("x").timestamps, [0.0, 0.01])

    def test_reads_from_file(self, tmp_path):
        path = tmp_path / "trace.xml"
        path.write_text(TRACE_XML, encoding="utf-8")

        r = CodesysTraceReader(path)
        assert r.source == str(path)
        assert len(r.list_variables()) == 2


class TestErrors:
    def test_invalid_xml(self):
        with pytest.raises(TraceFormatError):
            CodesysTraceReader.from_string("<Trace><TraceVariable></Trace>")

    def test_missing_varname(self):
        xml = "<Trace><TraceVariable><Timestamps>0</Timestamps><Values>1</Values></TraceVariable></Trace>"
        with pytest.raises(TraceFormatError):
            CodesysTraceReader.from_string(xml)

    def test_missing_values_element(self):
        xml = '<Trace><TraceVariable VarName="x"><Timestamps>0</Timestamps></TraceVariable></Trace>'
        r = CodesysTraceReader.from_string(xml)
        with pytest.raises(TraceFormatError):
            r.read_variable(0)

    def test_length_mismatch_propagates_validation_error(self):
        xml = (
            '<Trace><TraceVariable VarName="x"><Timestamps>0,1,2</Timestamps>'
            "<Values>1,2</Values></TraceVariable></Trace>"
        )
        r = CodesysTraceReader.from_string(xml)
        with pytest.raises(ValidationError):
            r.read_variable(0)

    def test_decreasing_timestamps_propagate_validation_error(self):
        xml = (
            '<Trace><TraceVariable VarName="x"><Timestamps>10,5</Timestamps>'
            "<Values>1,2</Values></TraceVariable></Trace>"
        )
        with pytest.raises(ValidationError):
            CodesysTraceReader.from_string(xml).read_variable(0)
