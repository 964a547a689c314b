from quickdates.trigger import TriggerContext, parse_trigger_context


def test_bare_trigger_opens_with_space():
    ctx = parse_trigger_context('Meet @', 6)
    assert ctx == TriggerContext(start=5, end=6, query='', insert_space_on_open=True)


def test_query_after_trigger():
    line = 'Meet @ next fri'
    ctx = parse_trigger_context(line, len(line))
    assert ctx.start == 5
    assert ctx.end == len(line)
    assert ctx.query == 'next fri'
    assert not ctx.insert_space_on_open


def test_only_last_trigger_counts():
    line = '@ today and @ tom'
    ctx = parse_trigger_context(line, len(line))
    assert ctx.start == 12
    assert ctx.query == 'tom'


def test_trigger_inside_word_ignored():
    assert parse_trigger_context('mail me@example.com', 19) is None
    assert parse_trigger_context('x@ tomorrow', 11) is None


def test_trigger_happy_allows_glued_trigger():
    ctx = parse_trigger_context('x@tom', 5, trigger_happy=True)
    assert ctx.start == 1
    assert ctx.query == 'tom'


def test_multi_character_trigger():
    line = 'due // friday'
    ctx = parse_trigger_context(line, len(line), '//')
    assert (ctx.start, ctx.query) == (4, 'friday')


def test_no_trigger():
    assert parse_trigger_context('nothing here', 5) is None
    assert parse_trigger_context('a @ b', 1) is None
    assert parse_trigger_context('a @ b', 3, '') is None


def test_just_replaced_trigger_does_not_reopen():
    line = '@ Tomorrow '
    assert parse_trigger_context(line, 10, last_replaced_trigger_start=0, last_insertion_end=10) is None
    # once the cursor moves on the trigger works again
    assert parse_trigger_context(line, 9, last_replaced_trigger_start=0, last_insertion_end=10) is not None
