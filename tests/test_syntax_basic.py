from classfmt.parsing import parse_members
from classfmt.syntax import (
    Attribute,
    MemberNode,
    MemberShape,
    Trivia,
    TriviaKind,
    ends_with_blank_line,
    literal_value,
    split_blank_prefix,
    split_trivia,
)


def test_literal_value_forms():
    assert literal_value('"Movement"') == "Movement"
    assert literal_value('"Tab\\tStop"') == "Tab\tStop"
    assert literal_value('@"say ""hi"""') == 'say "hi"'
    assert literal_value('header: "Named"') == "Named"
    assert literal_value("42") == "42"
    assert literal_value("true") == "true"
    assert literal_value("SomeConstant") is None
    assert literal_value('"a" + "b"') is None
    assert literal_value('$"{x}"') is None


def test_attribute_simple_name_and_matching():
    attr = Attribute(name="UnityEngine.Header", text='UnityEngine.Header("A")', arguments=('"A"',))
    assert attr.simple_name == "Header"
    assert attr.matches(["Header"])
    assert attr.first_literal() == "A"
    assert Attribute(name="Header", text="Header").first_literal() is None


def test_split_trivia_kinds():
    trivia = split_trivia("  // note\r\n\n    /* block */")
    assert [t.kind for t in trivia] == [
        TriviaKind.WHITESPACE,
        TriviaKind.COMMENT,
        TriviaKind.END_OF_LINE,
        TriviaKind.END_OF_LINE,
        TriviaKind.WHITESPACE,
        TriviaKind.COMMENT,
    ]
    assert "".join(t.text for t in trivia) == "  // note\r\n\n    /* block */"


def test_ends_with_blank_line():
    eol = Trivia(TriviaKind.END_OF_LINE, "\n")
    ws = Trivia(TriviaKind.WHITESPACE, "    ")
    comment = Trivia(TriviaKind.COMMENT, "// x")
    assert ends_with_blank_line([eol, eol])
    assert ends_with_blank_line([eol], [ws, eol, ws])
    assert not ends_with_blank_line([eol], [ws])
    assert not ends_with_blank_line([eol], [comment, eol])


def test_split_blank_prefix():
    blank, rest = split_blank_prefix(split_trivia("\n\n    // doc\n    "))
    assert "".join(t.text for t in blank) == "\n\n"
    assert "".join(t.text for t in rest) == "    // doc\n    "


def test_with_attribute_uses_member_indentation():
    node = parse_members("\n    [SerializeField] private int a;\n")[0]
    header = Attribute(name="Header", text='Header("A")', arguments=('"A"',))
    edited = node.with_attribute(header)
    assert edited.to_full_string() == '    [Header("A")]\n    [SerializeField] private int a;\n'
    # the original node is untouched
    assert node.to_full_string() == "    [SerializeField] private int a;\n"


def test_without_attributes_rewrites_shared_list():
    node = parse_members('\n    [Header("A"), SerializeField] private int a;\n')[0]
    assert node.without_attributes(["Header"]).to_full_string() == "    [SerializeField] private int a;\n"


def test_without_attributes_drops_emptied_list():
    node = parse_members('\n    [Header("A")]\n    private int a;\n')[0]
    assert node.without_attributes(["Header"]).to_full_string() == "    private int a;\n"
    assert node.without_attributes(["Tooltip"]) == node


def test_member_node_defaults():
    node = MemberNode(shape=MemberShape.OTHER, declaration=";")
    assert node.name == ""
    assert node.indentation == ""
    assert node.to_full_string() == ";"


def test_with_attribute_keeps_list_target():
    node = parse_members("\n    private int a;\n")[0]
    header = Attribute(name="Header", text='Header("A")', arguments=('"A"',))
    edited = node.with_attribute(header, target="field")
    assert edited.to_full_string() == '    [field: Header("A")]\n    private int a;\n'
    assert edited.attribute_lists[0].target == "field"


def test_without_attribute_removes_one_occurrence():
    node = parse_members('\n    [Header("A"), Header("B")]\n    [Header("A")]\n    private int a;\n')[0]
    first = node.attribute_lists[0].attributes[0]
    assert node.list_of(first) is node.attribute_lists[0]
    assert node.without_attribute(first).to_full_string() == (
        '    [Header("B")]\n    [Header("A")]\n    private int a;\n'
    )


def test_without_attribute_drops_emptied_list():
    node = parse_members('\n    [Header("A")] [SerializeField] private int a;\n')[0]
    header = node.attribute_lists[0].attributes[0]
    assert node.without_attribute(header).to_full_string() == "    [SerializeField] private int a;\n"
