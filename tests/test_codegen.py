from ntc_table.codegen import render_c_source, render_segment_report


def test_c_source_contains_table(small_table):
    src = render_c_source(small_table, header_lines=["Synthetic decay curve"])
    assert "typedef struct" in src
    assert "int16_t read_thermistor(const uint16_t ADCcount)" in src
    assert f"num_segments = {small_table.n_segments}u;" in src
    assert f"last_segment_end_count = {small_table.end_index}u;" in src
    assert " * Synthetic decay curve" in src
    for seg in small_table.segments:
        row = f"{{{seg.start_index:5d}, {seg.start_value: 6d}, {seg.slope_multiplier: 6d}, {seg.slope_shift:2d}}}"
        assert row in src
    assert src.count("{") == src.count("}")


def test_c_source_function_name(small_table):
    src = render_c_source(small_table, function_name="read_ntc")
    assert "int16_t read_ntc(const uint16_t ADCcount)" in src


def test_segment_report(small_table):
    report = render_segment_report(small_table)
    assert report.count("stats:") == small_table.n_segments
    assert "segment   0:  start ADC count =     0" in report
