import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from magic_notifier.capture import (
    capture_stack,
    default_predecessor,
    frames_from_traceback,
    trace_chain,
    walk_exception_chain,
)


def _raise_chain():
    try:
        try:
            raise ValueError('inner')
        except ValueError as inner:
            raise KeyError('middle') from inner
    except KeyError as middle:
        raise RuntimeError('outer') from middle


class TestExceptionChain:

    def test_single_exception(self):
        exc = ValueError('alone')
        assert walk_exception_chain(exc) == [exc]

    def test_explicit_cause_chain_outermost_first(self):
        try:
            _raise_chain()
        except RuntimeError as e:
            chain = walk_exception_chain(e)
        assert [type(c).__name__ for c in chain] == ['RuntimeError', 'KeyError', 'ValueError']

    def test_implicit_context_followed(self):
        try:
            try:
                raise ValueError('first')
            except ValueError:
                raise TypeError('second')
        except TypeError as e:
            chain = walk_exception_chain(e)
        assert [str(c) for c in chain] == ['second', 'first']

    def test_suppressed_context_not_followed(self):
        try:
            try:
                raise ValueError('first')
            except ValueError:
                raise TypeError('second') from None
        except TypeError as e:
            assert default_predecessor(e) is None
            assert len(walk_exception_chain(e)) == 1

    def test_self_referential_link_terminates(self):
        exc = ValueError('loop')
        assert walk_exception_chain(exc, predecessor=lambda e: e) == [exc]

    def test_cycle_terminates(self):
        a = ValueError('a')
        b = ValueError('b')
        links = {id(a): b, id(b): a}
        chain = walk_exception_chain(a, predecessor=lambda e: links.get(id(e)))
        assert chain == [a, b]

    def test_trace_chain_extra_only_on_first(self):
        try:
            _raise_chain()
        except RuntimeError as e:
            entries = trace_chain(e, {'job': 'nightly'})
        assert len(entries) == 3
        assert entries[0].extra == {'job': 'nightly'}
        assert entries[1].extra is None
        assert entries[2].extra is None
        assert entries[0].to_dict()['exception'] == {'class': 'RuntimeError', 'message': 'outer'}
        assert 'extra' not in entries[1].to_dict()


class TestFrames:

    def test_frames_from_traceback(self):
        try:
            _raise_chain()
        except RuntimeError as e:
            frames = frames_from_traceback(e.__traceback__)
        assert frames[0].method == 'test_frames_from_traceback'
        assert frames[-1].method == '_raise_chain'
        assert frames[-1].filename == __file__
        assert "raise RuntimeError('outer') from middle" in frames[-1].code

    def test_unraised_exception_has_no_frames(self):
        assert frames_from_traceback(ValueError('x').__traceback__) == []

    def test_capture_stack_includes_caller(self):
        frames = capture_stack()
        assert frames[-1].method == 'test_capture_stack_includes_caller'
        assert frames[-1].lineno is not None
