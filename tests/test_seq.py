import pytest

from metakit.seq import SeqError, Token, contains_loop, eseq, expand, seq, tokenize


def test_parse_header_empty_body():
    assert seq("N in 0..8 {\n    // nothing\n}") == ""


def test_parse_body_pastes_literal():
    result = seq("N in 0..4 { expand_to_nothing!(#N); }")
    assert result == (
        "expand_to_nothing ! (0) ; expand_to_nothing ! (1) ; "
        "expand_to_nothing ! (2) ; expand_to_nothing ! (3) ;"
    )


def test_expand_four_errors():
    result = seq('N in 0..4 { compile_error!(concat!("error number ", stringify!(N))); }')
    assert result == (
        'compile_error ! (concat ! ("error number " , stringify ! (0))) ; '
        'compile_error ! (concat ! ("error number " , stringify ! (1))) ; '
        'compile_error ! (concat ! ("error number " , stringify ! (2))) ; '
        'compile_error ! (concat ! ("error number " , stringify ! (3))) ;'
    )


def test_paste_ident():
    result = seq("N in 1..4 { fn f#N () -> u64 { N * 2 } }")
    assert result == (
        "fn f1 () -> u64 { 1 * 2 } fn f2 () -> u64 { 2 * 2 } fn f3 () -> u64 { 3 * 2 }"
    )


def test_repeat_section():
    source = """N in 0..16 {
        #[derive(Copy, Clone, PartialEq, Debug)]
        enum Interrupt {
            #(
                Irq#N,
            )*
        }
    }"""
    result = seq(source)
    assert result.startswith(
        "# [derive (Copy , Clone , PartialEq , Debug)] enum Interrupt { Irq0 , Irq1 ,"
    )
    assert result.endswith("Irq14 , Irq15 , }")
    assert "Irq8 ," in result
    assert result.count("Irq") == 16


def test_make_work_in_function():
    source = "N in 0..4 {{ #( sum += tuple.N as u64; )* }}"
    assert eseq(source) == (
        "{ sum += tuple . 0 as u64 ; sum += tuple . 1 as u64 ; "
        "sum += tuple . 2 as u64 ; sum += tuple . 3 as u64 ; }"
    )


def test_init_array():
    result = eseq("N in 0..256 { [ #( Proc::new(N), )* ] }")
    assert result.startswith("[Proc :: new (0) , Proc :: new (1) ,")
    assert "Proc :: new (32) ," in result
    assert result.endswith("Proc :: new (255) ,]")
    assert result.count("Proc :: new") == 256


def test_inclusive_range():
    result = seq("N in 16..=20 { enum E { #( Variant#N, )* } }")
    assert result == "enum E { Variant16 , Variant17 , Variant18 , Variant19 , Variant20 , }"


def test_inclusive_range_with_space():
    assert seq("N in 1.. =3 { N }") == "1 2 3"


def test_ident_span():
    assert seq("N in 0..1 { fn main() { let _ = Missing#N; } }") == (
        "fn main () { let _ = Missing0 ; }"
    )


def test_interaction_with_macro_rules():
    result = eseq("N in 0..256 { [#(Proc::new(),)*] }")
    assert result.startswith("[Proc :: new () , Proc :: new () ,")
    assert result.endswith(",]")
    assert result.count("Proc :: new ()") == 256


def test_multiple_sections():
    assert seq("N in 0..2 { a #(x#N)* b #(y#N)* }") == "a x0 x1 b y0 y1"


def test_integer_literal_forms():
    assert seq("N in 0x0..0x3 { N }") == "0 1 2"
    assert seq("N in 0..3usize { N }") == "0 1 2"
    assert seq("N in 1_0..1_2 { N }") == "10 11"


def test_empty_range():
    assert seq("N in 5..5 { N }") == ""


def test_ident_outside_loop():
    with pytest.raises(SeqError, match="outside"):
        seq("N in 0..3 { #(N)* N }")


def test_brace_section_unsupported():
    with pytest.raises(SeqError):
        seq("N in 0..3 { #{N} }")


@pytest.mark.parametrize(
    "source",
    [
        "N 0..3 { }",
        "N in a..3 { }",
        "N in 0-3 { }",
        "N in 0..3 ( )",
        "N in 0..3 { } extra",
        "N in 0..",
        "1 in 0..3 { }",
    ],
)
def test_malformed_header(source):
    with pytest.raises(SeqError):
        seq(source)


def test_tokenize_groups_and_puncts():
    tokens = tokenize("f(a, b) -> c::d")
    assert [token.kind for token in tokens] == ["ident", "group", "punct", "ident", "punct", "ident"]
    assert tokens[1].text == "("
    assert [str(child) for child in tokens[1].children] == ["a", ",", "b"]
    assert tokens[2].text == "->"
    assert tokens[4].text == "::"


def test_tokenize_skips_comments():
    tokens = tokenize("a /* one /* nested */ */ b // trailing\n c")
    assert [token.text for token in tokens] == ["a", "b", "c"]


def test_tokenize_literals():
    tokens = tokenize("\"x y\" 'c' 'a 1.5 0..8")
    assert [(token.kind, token.text) for token in tokens] == [
        ("literal", '"x y"'),
        ("literal", "'c'"),
        ("lifetime", "'a"),
        ("literal", "1.5"),
        ("literal", "0"),
        ("punct", ".."),
        ("literal", "8"),
    ]


@pytest.mark.parametrize("source", ["(a", "a)", "(a]"])
def test_tokenize_unbalanced(source):
    with pytest.raises(SeqError):
        tokenize(source)


def test_tokenize_unterminated_comment():
    with pytest.raises(SeqError, match="unterminated"):
        tokenize("a /* b")


def test_contains_loop():
    assert contains_loop(tokenize("#(a)*")) is True
    assert contains_loop(tokenize("x { y [ #(a)* ] }")) is True
    assert contains_loop(tokenize("#(a)")) is False
    assert contains_loop(tokenize("#[a]*")) is False


def test_expand_paste():
    assert expand(tokenize("f#N"), "N", 0, 3, 7) == [Token("ident", "f7")]


def test_expand_literal_without_prefix():
    assert expand(tokenize("(#N)"), "N", 0, 3, 4) == [
        Token("group", "(", (Token("literal", "4"),))
    ]


def test_expand_repeats_section():
    result = expand(tokenize("#(N,)*"), "N", 2, 4)
    assert [str(token) for token in result] == ["2", ",", "3", ","]


def test_token_rendering():
    assert str(tokenize("{}")[0]) == "{}"
    assert str(tokenize("{ a }")[0]) == "{ a }"
    assert str(tokenize("[ a , b ]")[0]) == "[a , b]"