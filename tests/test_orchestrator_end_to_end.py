import codecs

import pytest

from classfmt.options import ReorganizeOptions
from classfmt.orchestrator import reorganize_source, run_once


def _normalize(text):
    return " ".join(text.split())


SIMPLE = '''
public class TestClass {
    private void MethodB() {}
    public void MethodA() {}
    private int fieldB;
    public int fieldA;
}
'''

WITH_HEADER = '''
public class TestClass {
    [Header("Group A")]
    public int fieldB;
    public int fieldA;
    [Header("Group B")]
    public int fieldC;
}
'''

MULTIPLE_HEADERS = '''
public class TestClass {
    [Header("Group A")]
    [SerializeField] private bool fieldB = true;
    [SerializeField] private bool fieldA = true;

    [Header("Group B")]
    [SerializeField] private float fieldE = 1f;
    [SerializeField] private float fieldF = 2f;
    [SerializeField] private float fieldC = 3f;
    [SerializeField] private float fieldD = 4f;
}
'''

ORPHANED_FIELDS = '''
public class TestClass {
    [Header("Group A")]
    [SerializeField] private bool fieldB = true;
    [SerializeField] private bool fieldA = true;

    [Header("Group B")]
    [SerializeField] private float fieldE = 1f;
    [SerializeField] private float fieldF = 2f;
    [SerializeField] private float fieldC = 3f;
    [SerializeField] private float fieldD = 4f;

    private int aFieldB;
    private int aFieldA;
}
'''


@pytest.mark.parametrize(
    "source,expected",
    [
        (
            SIMPLE,
            "public class TestClass { public int fieldA; private int fieldB; "
            "public void MethodA() {} private void MethodB() {} }",
        ),
        (
            WITH_HEADER,
            'public class TestClass { [Header("Group A")] public int fieldA; public int fieldB; '
            '[Header("Group B")] public int fieldC; }',
        ),
        (
            MULTIPLE_HEADERS,
            'public class TestClass { [Header("Group A")] [SerializeField] private bool fieldA = true; '
            "[SerializeField] private bool fieldB = true; "
            '[Header("Group B")] [SerializeField] private float fieldC = 3f; '
            "[SerializeField] private float fieldD = 4f; "
            "[SerializeField] private float fieldE = 1f; "
            "[SerializeField] private float fieldF = 2f; }",
        ),
    ],
)
def test_reorders_unity_classes(source, expected):
    assert _normalize(reorganize_source(source)) == expected


def test_orphaned_fields_layout():
    assert reorganize_source(ORPHANED_FIELDS) == '''
public class TestClass {
    [Header("Group A")]
    [SerializeField] private bool fieldA = true;
    [SerializeField] private bool fieldB = true;

    [Header("Group B")]
    [SerializeField] private float fieldC = 3f;
    [SerializeField] private float fieldD = 4f;
    [SerializeField] private float fieldE = 1f;
    [SerializeField] private float fieldF = 2f;

    private int aFieldA;

    private int aFieldB;
}
'''


def test_second_run_changes_nothing():
    once = reorganize_source(ORPHANED_FIELDS)
    assert reorganize_source(once) == once


def test_crlf_files_stay_crlf():
    source = WITH_HEADER.replace("\n", "\r\n")
    out = reorganize_source(source)
    assert "\n" not in out.replace("\r\n", "")
    assert _normalize(out) == _normalize(reorganize_source(WITH_HEADER))


def test_explicit_newline_option():
    out = reorganize_source(WITH_HEADER.replace("\n", "\r\n"), ReorganizeOptions(newline="\n"))
    assert '[Header("Group A")]\n' in out


def test_source_without_classes_is_returned_as_is():
    source = "namespace A { struct S { int b; int a; } }\n"
    assert reorganize_source(source) == source


def test_nested_classes_move_as_a_unit():
    source = "class Outer\n{\n    class Inner { int b; int a; }\n    int x;\n}\n"
    assert reorganize_source(source) == "class Outer\n{\n    int x;\n    class Inner { int b; int a; }\n}\n"


def test_run_once_rewrites_files(tmp_path):
    path = tmp_path / "Player.cs"
    path.write_bytes(SIMPLE.encode("utf-8"))
    changed = run_once([str(path)])
    assert changed == [str(path)]
    assert path.read_bytes().decode("utf-8") == reorganize_source(SIMPLE)
    assert run_once([str(path)]) == []


def test_check_mode_leaves_files_alone(tmp_path):
    path = tmp_path / "Player.cs"
    path.write_bytes(SIMPLE.encode("utf-8"))
    assert run_once([str(path)], check=True) == [str(path)]
    assert path.read_bytes().decode("utf-8") == SIMPLE


def test_byte_order_mark_is_preserved(tmp_path):
    path = tmp_path / "Player.cs"
    path.write_bytes(codecs.BOM_UTF8 + SIMPLE.encode("utf-8"))
    run_once([str(path)])
    raw = path.read_bytes()
    assert raw.startswith(codecs.BOM_UTF8)
    assert raw[len(codecs.BOM_UTF8):].decode("utf-8") == reorganize_source(SIMPLE)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        run_once([str(tmp_path / "Missing.cs")])


def test_unparseable_file_raises_value_error(tmp_path):
    path = tmp_path / "Broken.cs"
    path.write_text("class Broken { void M() {\n", encoding="utf-8")
    with pytest.raises(ValueError):
        run_once([str(path)])


def test_config_file_and_overrides(tmp_path):
    cfg = tmp_path / "classfmt.yaml"
    cfg.write_text("spacing:\n  enabled: false\n", encoding="utf-8")
    source = "class A\n{\n    private int b;\n    [SerializeField] private int a;\n}\n"
    path = tmp_path / "A.cs"
    path.write_text(source, encoding="utf-8")

    run_once([str(path)], config_path=str(cfg))
    assert path.read_text(encoding="utf-8") == (
        "class A\n{\n    [SerializeField] private int a;\n    private int b;\n}\n"
    )

    run_once([str(path)], config_path=str(cfg), overrides={"spacing": True})
    assert path.read_text(encoding="utf-8") == (
        "class A\n{\n    [SerializeField] private int a;\n\n    private int b;\n}\n"
    )


MIXED_GROUPS = '''
public class Enemy : MonoBehaviour
{
    private int a0;
    [Header("Stats")]
    [SerializeField] private int hp;
    private int mana;
    [Header("Refs")]
    [SerializeField] private Transform target;

    void Tick() { }
    private int b;
}
'''


def test_mixed_groups_converge_in_one_pass():
    once = reorganize_source(MIXED_GROUPS)
    assert reorganize_source(once) == once
    assert once == '''
public class Enemy : MonoBehaviour
{
    private int a0;
    private int b;
    [Header("Stats")]
    [SerializeField] private int hp;

    private int mana;
    [Header("Refs")]
    [SerializeField] private Transform target;

    void Tick() { }
}
'''
