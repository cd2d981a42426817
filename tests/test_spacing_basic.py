from classfmt.parsing import parse_members
from classfmt.stages.classifier import classify_members
from classfmt.stages.grouping import assign_groups
from classfmt.stages.spacing import separate_groups


def _handles(body):
    return assign_groups(classify_members(parse_members(body)))


def _render(handles):
    return "".join(h.node.to_full_string() for h in handles)


def test_blank_line_after_last_exposed_field_in_group():
    out = separate_groups(_handles(
        '\n    [Header("A")]\n    [SerializeField] private int a;\n'
        "    [SerializeField] private int b;\n"
        "    private int c;\n"
    ))
    assert _render(out) == (
        '    [Header("A")]\n    [SerializeField] private int a;\n'
        "    [SerializeField] private int b;\n"
        "\n"
        "    private int c;\n"
    )


def test_spacing_is_idempotent():
    once = separate_groups(_handles(
        "\n    [SerializeField] private int a;\n    private int b;\n"
    ))
    twice = separate_groups(once)
    assert _render(twice) == _render(once) == "    [SerializeField] private int a;\n\n    private int b;\n"


def test_existing_blank_line_is_kept():
    body = "\n    [SerializeField] private int a;\n\n    private int b;\n"
    handles = _handles(body)
    assert separate_groups(handles) == handles


def test_last_member_of_group_gets_nothing():
    body = "\n    private int b;\n    [SerializeField] private int a;\n"
    handles = _handles(body)
    assert _render(separate_groups(handles)) == "    private int b;\n    [SerializeField] private int a;\n"


def test_trailing_comment_is_preserved():
    out = separate_groups(_handles(
        "\n    [SerializeField] private int a; // hp\n    private int b;\n"
    ), "\r\n")
    assert _render(out) == "    [SerializeField] private int a; // hp\n\r\n    private int b;\n"


def test_only_groups_are_separated():
    out = separate_groups(_handles(
        '\n    [Header("A")]\n    [SerializeField] private int a;\n'
        '    [Header("B")]\n    private int b;\n'
    ))
    # the exposed field closes group A, so no blank line is forced
    assert _render(out) == (
        '    [Header("A")]\n    [SerializeField] private int a;\n'
        '    [Header("B")]\n    private int b;\n'
    )
