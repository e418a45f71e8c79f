from loopforge.executors.base import build_wrapper, parse_execution_logs, serializable_state


def test_result_and_state_lines_are_stripped_from_logs():
    stdout = 'working\ndone\n\n__STATE__:{"x": 3}\n__RESULT__:{"answer": 3}\n'
    result = parse_execution_logs(stdout)
    assert result.logs == "working\ndone"
    assert result.output == {"answer": 3}
    assert result.has_output is True
    assert result.state == {"x": 3}


def test_no_result_line_means_no_output():
    result = parse_execution_logs('hello\n\n__STATE__:{}\n')
    assert result.logs == "hello"
    assert result.output is None
    assert result.has_output is False
    assert result.state == {}


def test_result_line_must_be_last():
    stdout = '__RESULT__:1\nprinted afterwards\n'
    result = parse_execution_logs(stdout)
    assert result.has_output is False
    assert result.logs == "__RESULT__:1\nprinted afterwards"


def test_non_json_result_payload_is_kept_as_text():
    result = parse_execution_logs("__RESULT__:not json")
    assert result.output == "not json"
    assert result.has_output is True


def test_empty_output():
    result = parse_execution_logs("")
    assert result.logs == ""
    assert result.has_output is False


def test_unserializable_state_entries_are_dropped():
    state = {"n": 1, "handle": object(), "items": [1, "two"]}
    assert serializable_state(state) == {"n": 1, "items": [1, "two"]}


def test_wrapper_embeds_code_and_state():
    program = build_wrapper("print(x)", {"x": 5, "bad": object()})
    assert "'print(x)'" in program
    assert '{"x": 5}' in program
    assert "def final_answer(answer):" in program
    compile(program, "<wrapper>", "exec")
