import os
import re
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from magic_notifier.scrub import (
    ExactRule,
    PatternRule,
    Scrubber,
    compile_rule,
    compile_rules,
    scrub,
)


class TestCompileRules:

    def test_plain_string_is_exact_rule(self):
        rule = compile_rule('password')
        assert isinstance(rule, ExactRule)
        assert rule.matches('PASSWORD')
        assert not rule.matches('client_password')

    def test_delimited_string_is_pattern_rule(self):
        rule = compile_rule('/token|password/i')
        assert isinstance(rule, PatternRule)
        for key in ('AUTH_TOKEN', 'client_password', 'PASSWORD'):
            assert rule.matches(key), key
        assert not rule.matches('username')

    def test_pattern_without_flag_is_case_sensitive(self):
        rule = compile_rule('/token/')
        assert rule.matches('auth_token')
        assert not rule.matches('AUTH_TOKEN')

    def test_compiled_pattern_accepted(self):
        rule = compile_rule(re.compile(r'^secret'))
        assert isinstance(rule, PatternRule)
        assert rule.matches('secret_key')
        assert not rule.matches('my_secret')

    def test_invalid_pattern_raises(self):
        with pytest.raises(ValueError):
            compile_rule('/(unclosed/')

    def test_unsupported_type_raises(self):
        with pytest.raises(TypeError):
            compile_rule(42)

    def test_rules_keep_order_and_round_trip_source(self):
        rules = compile_rules(['a', '/b|c/i'])
        assert [r.to_source() for r in rules] == ['a', '/b|c/i']

    def test_empty(self):
        assert compile_rules(None) == ()
        assert compile_rules([]) == ()


class TestScrubber:

    def setup_method(self):
        self.rules = compile_rules(['something_special', '/token|password/i'])
        self.scrubber = Scrubber(self.rules)

    def test_scalar_masked_to_its_length(self):
        assert self.scrubber.scrub({'password': 'hunter2'}) == {'password': '*******'}

    def test_number_masked_by_text_length(self):
        assert self.scrubber.scrub({'auth_token': 12345}) == {'auth_token': '*****'}

    def test_none_masked_to_empty(self):
        assert self.scrubber.scrub({'password': None}) == {'password': ''}

    def test_matched_container_collapses(self):
        result = self.scrubber.scrub({
            'array_token': {'secret_key': 'secret_value'},
            'list_password': ['a', 'b'],
        })
        assert result == {'array_token': '*', 'list_password': '*'}

    def test_unmatched_containers_are_recursed(self):
        result = self.scrubber.scrub({
            'array_key': {
                'subarray_key': 'subarray_value',
                'subarray_password': 'hunter2',
                'deeper': {'something_special': 'excalibur'},
            },
        })
        assert result == {
            'array_key': {
                'subarray_key': 'subarray_value',
                'subarray_password': '*******',
                'deeper': {'something_special': '*********'},
            },
        }

    def test_sequences_of_mappings(self):
        result = self.scrubber.scrub([{'password': 'abc'}, ({'name': 'x'},)])
        assert result == [{'password': '***'}, ({'name': 'x'},)]

    def test_input_not_mutated(self):
        data = {'password': 'hunter2', 'nested': {'token': 'abc'}}
        self.scrubber.scrub(data)
        assert data == {'password': 'hunter2', 'nested': {'token': 'abc'}}

    def test_returns_new_structure_without_rules(self):
        data = {'nested': {'a': 1}}
        result = Scrubber().scrub(data)
        assert result == data
        assert result is not data
        assert result['nested'] is not data['nested']

    def test_scalar_input_passes_through(self):
        assert self.scrubber.scrub('password') == 'password'

    def test_non_string_keys(self):
        assert self.scrubber.scrub({1: 'one'}) == {1: 'one'}

    def test_module_function(self):
        assert scrub({'PASSWORD': 'x'}, self.rules) == {'PASSWORD': '*'}
