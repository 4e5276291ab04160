import pytest

from src.errors import MarkupParseError
from src.markup import MarkupParser, parse_markup
from src.markup.nodes import ExpressionContainer, Fragment, SpreadAttribute, Text, iter_elements


PAGE = '''export default function Home() {
  return (
    <div className="x">
      <h1>Hello</h1>
    </div>
  );
}
'''


def tags(code):
    return [element.tag for element in iter_elements(parse_markup(code))]


def test_parses_nested_elements_with_positions():
    roots = parse_markup(PAGE)
    assert len(roots) == 1
    div = roots[0]
    assert div.tag == 'div'
    assert div.position.line == 3
    assert div.position.column == 4
    assert div.get_attribute('className').value == 'x'

    h1 = div.child_elements()[0]
    assert h1.tag == 'h1'
    assert (h1.position.line, h1.position.column) == (4, 6)
    assert h1.text_content() == 'Hello'
    assert list(h1.ancestors()) == [div]


def test_attributes_end_is_after_last_attribute():
    code = 'const el = <img src="a.png" alt="" />;'
    img = parse_markup(code)[0]
    assert img.self_closing
    assert img.attributes_end == code.index('alt=""') + len('alt=""')


def test_attributes_end_without_attributes_is_after_tag_name():
    code = 'const el = <p>x</p>;'
    p = parse_markup(code)[0]
    assert p.attributes_end == code.index('<p') + 2


def test_less_than_operator_is_not_markup():
    assert tags('const a = b < c;\nconst el = <p>x</p>;') == ['p']


def test_type_arguments_are_not_markup():
    assert tags("const [s, setS] = useState<string>('');") == []


def test_generic_arrow_function_is_not_markup():
    assert tags('const g = <T,>(x: T) => x;') == []


def test_arrow_body_and_logical_and_are_markup():
    assert tags('const f = () => <span>hi</span>;\nconst g = ok && <a href="/">x</a>;') == ['span', 'a']


def test_strings_and_comments_are_skipped():
    code = '''const s = "<p>not markup</p>";
// <h1>also not</h1>
/* <h2>nor this</h2> */
const t = '<span>';
'''
    assert tags(code) == []


def test_markup_inside_template_literal_expression():
    assert tags('const t = `a ${cond && <b>x</b>} c`;') == ['b']


def test_regex_literal_with_angle_bracket():
    assert tags('const re = /<p>/g;\nconst el = (<p>y</p>);') == ['p']


def test_expression_container_children():
    code = 'const el = <p>{cond ? <span>a</span> : null}</p>;'
    p = parse_markup(code)[0]
    container = p.children[0]
    assert isinstance(container, ExpressionContainer)
    assert container.source == 'cond ? <span>a</span> : null'
    span = container.elements[0]
    assert span.parent is container
    assert list(span.ancestors()) == [p]
    assert [e.tag for e in iter_elements([p])] == ['p', 'span']


def test_comment_only_expression_container():
    p = parse_markup('const el = <p>{/* todo */}</p>;')[0]
    assert isinstance(p.children[0], ExpressionContainer)


def test_spread_attribute():
    p = parse_markup('const el = <p {...props} id="a">x</p>;')[0]
    spread = p.attributes[0]
    assert isinstance(spread, SpreadAttribute)
    assert spread.argument == 'props'
    assert p.get_attribute('id').value == 'a'


def test_expression_attribute_with_markup():
    code = 'const el = <Card title={<h2>T</h2>} onClick={() => go(1)} />;'
    card = parse_markup(code)[0]
    title = card.get_attribute('title')
    assert title.is_expression
    assert [e.tag for e in title.elements] == ['h2']
    assert card.get_attribute('onClick').value == '() => go(1)'
    assert [e.tag for e in iter_elements([card])] == ['Card', 'h2']


def test_fragment():
    roots = parse_markup('function A() { return <><h1>a</h1><p>b</p></>; }')
    fragment = roots[0]
    assert isinstance(fragment, Fragment)
    assert [child.tag for child in fragment.children] == ['h1', 'p']
    assert list(fragment.children[0].ancestors()) == []
    assert fragment.text_content() == 'ab'


def test_member_and_namespaced_tags():
    assert tags('const a = <motion.p>x</motion.p>;\nconst b = <svg:text>y</svg:text>;') == [
        'motion.p', 'svg:text',
    ]


def test_stray_closing_tag_is_skipped():
    div = parse_markup('const el = <div><p>a</span></p></div>;')[0]
    p = div.child_elements()[0]
    assert p.text_content() == 'a'


def test_unmatched_inner_element_closed_by_outer_closing_tag():
    code = 'const el = <div><p>a</div>;'
    div = parse_markup(code)[0]
    p = div.child_elements()[0]
    assert p.end == code.index('</div>')
    assert div.end == code.index('</div>') + len('</div>')


def test_lone_less_than_in_text_is_kept_as_text():
    p = parse_markup('const el = <p>a < b</p>;')[0]
    assert p.text_content() == 'a < b'
    assert any(isinstance(child, Text) and child.value == '<' for child in p.children)


def test_unclosed_element_raises():
    with pytest.raises(MarkupParseError) as excinfo:
        parse_markup('const x = <div><p>a</p>')
    assert 'Unclosed <div>' in str(excinfo.value)
    assert excinfo.value.line == 1


def test_unterminated_expression_raises():
    with pytest.raises(MarkupParseError):
        parse_markup('const x = <p>{value</p>;')


def test_position_lookup():
    parser = MarkupParser('a\nbc\n')
    pos = parser.position(3)
    assert (pos.line, pos.column) == (2, 1)


def test_columns_count_utf16_code_units():
    code = 'const x = <li>\U0001F680 <span>Fast</span></li>;'
    li = parse_markup(code)[0]
    span = li.child_elements()[0]
    assert span.position.offset == code.index('<span>')
    assert span.position.column == code.index('<span>') + 1


def test_bmp_characters_take_one_column():
    code = 'const x = <li>é <span>Fast</span></li>;'
    span = parse_markup(code)[0].child_elements()[0]
    assert span.position.column == code.index('<span>')


@pytest.mark.parametrize('code', [
    'type Identity = <T>(value: T) => T;\nexport const Home = () => <p>Hello</p>;',
    'interface Props {\n  render: <T>(x: T) => ReactNode;\n}\nconst el = <p>Hello</p>;',
])
def test_generic_function_types_are_not_markup(code):
    assert tags(code) == ['p']


def test_element_starting_with_parenthesis_is_still_markup():
    assert tags('const el = <b>(optional)</b>;') == ['b']
