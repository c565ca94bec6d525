import pytest

from minishell.lexer import Token, TokenType, has_unclosed_quotes, is_space, is_symbol, tokenize


def test_simple_pipeline():
    tokens = tokenize("ls -l | wc")
    assert [t.type for t in tokens] == [
        TokenType.WORD,
        TokenType.WORD,
        TokenType.PIPE,
        TokenType.WORD,
    ]
    assert [t.value for t in tokens] == ["ls", "-l", "|", "wc"]


def test_operators_split_words_without_spaces():
    tokens = tokenize("a>>b<<c>d<e")
    assert tokens == [
        Token(TokenType.WORD, "a"),
        Token(TokenType.D_GREAT, ">>"),
        Token(TokenType.WORD, "b"),
        Token(TokenType.D_LESS, "<<"),
        Token(TokenType.WORD, "c"),
        Token(TokenType.GREAT, ">"),
        Token(TokenType.WORD, "d"),
        Token(TokenType.LESS, "<"),
        Token(TokenType.WORD, "e"),
    ]


def test_triple_greater_is_double_then_single():
    assert [t.type for t in tokenize(">>>")] == [TokenType.D_GREAT, TokenType.GREAT]


def test_quotes_keep_spaces_and_operators():
    tokens = tokenize('echo "a | b" \'c > d\'')
    assert [t.value for t in tokens] == ["echo", '"a | b"', "'c > d'"]
    assert all(t.type is TokenType.WORD for t in tokens)


def test_quotes_join_adjacent_text():
    assert [t.value for t in tokenize('pre"mid dle"post')] == ['pre"mid dle"post']


def test_tab_inside_word_does_not_split():
    assert [t.value for t in tokenize("a\tb")] == ["a\tb"]


def test_leading_whitespace_is_skipped():
    assert [t.value for t in tokenize("\t\n  cmd")] == ["cmd"]


@pytest.mark.parametrize("line", ["", "   ", "\t\t"])
def test_blank_lines_give_no_tokens(line):
    assert tokenize(line) == []


@pytest.mark.parametrize("line", ["cat a|grep b>out", "x < y | z >> w", "echo hi"])
def test_values_cover_line_without_spaces(line):
    assert "".join(t.value for t in tokenize(line)) == line.replace(" ", "")


@pytest.mark.parametrize("line", ["'abc", '"abc', "'a\"b", 'x "y\' z'])
def test_unclosed_quotes(line):
    assert has_unclosed_quotes(line) is True


@pytest.mark.parametrize("line", ["", "'a'", '"a"', "'\"'", '"\'"', "plain"])
def test_closed_quotes(line):
    assert has_unclosed_quotes(line) is False


@pytest.mark.parametrize("char", [" ", "\t", "\n", "\v", "\f", "\r"])
def test_is_space_true(char):
    assert is_space(char) is True


@pytest.mark.parametrize("char", ["a", "|", "\x08", "\x0e"])
def test_is_space_false(char):
    assert is_space(char) is False


@pytest.mark.parametrize("char", ["<", "|", ">"])
def test_is_symbol_true(char):
    assert is_symbol(char) is True


@pytest.mark.parametrize("char", ["a", "&", ";", " "])
def test_is_symbol_false(char):
    assert is_symbol(char) is False