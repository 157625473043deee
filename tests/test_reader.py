import zipfile

import pytest

from solarimport.reader import (
    CsvReader,
    Format,
    XlsxReader,
    cell_to_string,
    format_float,
    make_reader,
)


def test_reads_simple_csv():
    grid = CsvReader().read("dummy.csv", "a,b,c\n1,2,3\n", None)
    assert grid == [["a", "b", "c"], ["1", "2", "3"]]


def test_flexible_rows():
    grid = CsvReader().read("d.csv", "a,b\n1,2,3\n", None)
    assert len(grid[0]) == 2
    assert len(grid[1]) == 3


def test_csv_quoted_field_with_newline():
    grid = CsvReader().read("d.csv", 'a,"x\ny"\r\n1,2\r\n', None)
    assert grid == [["a", "x\ny"], ["1", "2"]]


def test_csv_requires_text():
    with pytest.raises(ValueError, match="requires decoded text"):
        CsvReader().read("d.csv", None, None)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.csv", Format.CSV),
        ("A.CSV", Format.CSV),
        ("b.xlsx", Format.XLSX),
        ("c.XLSM", Format.XLSX),
        ("d.txt", None),
        ("noext", None),
    ],
)
def test_format_from_path(name, expected):
    assert Format.from_path(name) is expected


def test_needs_text_decode():
    assert Format.CSV.needs_text_decode() is True
    assert Format.XLSX.needs_text_decode() is False


def test_make_reader_csv_reads_text():
    reader = make_reader(Format.CSV)
    assert isinstance(reader, CsvReader)
    assert reader.read("x.csv", "a,b\n", None) == [["a", "b"]]


def test_format_float_integer():
    assert format_float(403.0) == "403"


def test_format_float_decimal():
    assert format_float(403.4016) == "403.4016"


def test_cell_string():
    assert cell_to_string("hi") == "hi"
    assert cell_to_string(None) == ""
    assert cell_to_string(1.5) == "1.5"


def test_cell_bool_and_int():
    assert cell_to_string(True) == "true"
    assert cell_to_string(False) == "false"
    assert cell_to_string(7) == "7"


WORKBOOK = (
    '<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">'
    "<sheets>"
    '<sheet name="First" sheetId="1" r:id="rId1"/>'
    '<sheet name="Second" sheetId="2" r:id="rId2"/>'
    "</sheets></workbook>"
)
RELS = (
    '<Relationships xmlns="http://schemas.openxmlformats.org/package/2006/relationships">'
    '<Relationship Id="rId1" Target="worksheets/sheet1.xml" Type="ws"/>'
    '<Relationship Id="rId2" Target="/xl/worksheets/sheet2.xml" Type="ws"/>'
    "</Relationships>"
)
SHARED = (
    '<sst xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
    "<si><t>案件編號</t></si>"
    "<si><r><t>1</t></r><r><t>日</t></r></si>"
    "</sst>"
)
SHEET1 = (
    '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main"><sheetData>'
    '<row r="1"><c r="A1" t="s"><v>0</v></c><c r="B1" t="s"><v>1</v></c></row>'
    '<row r="2"><c r="A2" t="inlineStr"><is><t>A001</t></is></c>'
    '<c r="B2"><v>403.4016</v></c><c r="C2"><v>403</v></c></row>'
    '<row r="3"><c r="A3" t="b"><v>1</v></c><c r="C3" t="e"><v>#DIV/0!</v></c></row>'
    "</sheetData></worksheet>"
)
SHEET2 = (
    '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main"><sheetData>'
    '<row r="2"><c r="B2" t="str"><v>x</v></c><c r="C2"/></row>'
    '<row r="3"><c r="C3"><v>2.5</v></c></row>'
    "</sheetData></worksheet>"
)


@pytest.fixture
def workbook_path(tmp_path):
    path = tmp_path / "book.xlsx"
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("xl/workbook.xml", WORKBOOK)
        zf.writestr("xl/_rels/workbook.xml.rels", RELS)
        zf.writestr("xl/sharedStrings.xml", SHARED)
        zf.writestr("xl/worksheets/sheet1.xml", SHEET1)
        zf.writestr("xl/worksheets/sheet2.xml", SHEET2)
    return path


def test_make_reader_xlsx_reads_workbook(workbook_path):
    reader = make_reader(Format.XLSX)
    assert isinstance(reader, XlsxReader)
    assert reader.read(workbook_path, None, None)[0] == ["案件編號", "1日", ""]


def test_xlsx_reads_first_sheet_by_default(workbook_path):
    grid = XlsxReader().read(workbook_path, None, None)
    assert grid == [
        ["案件編號", "1日", ""],
        ["A001", "403.4016", "403"],
        ["true", "", "#Div0"],
    ]


def test_xlsx_sheet_one_indexed(workbook_path):
    assert XlsxReader().read(workbook_path, None, 1) == XlsxReader().read(workbook_path, None, None)


def test_xlsx_second_sheet_starts_at_used_range(workbook_path):
    grid = XlsxReader().read(workbook_path, None, 2)
    assert grid == [["x", ""], ["", "2.5"]]


def test_xlsx_sheet_out_of_range(workbook_path):
    with pytest.raises(ValueError, match="out of range"):
        XlsxReader().read(workbook_path, None, 3)


def test_xlsx_not_a_zip(tmp_path):
    path = tmp_path / "bad.xlsx"
    path.write_bytes(b"not a workbook")
    with pytest.raises(ValueError, match="open_workbook"):
        XlsxReader().read(path, None, None)