"""
Checker tests — Ruby source in, findings out.

  1. Unknown methods
  2. Arity mismatches (fixed, -1, open-ended)
  3. Receivers that are not tracked (literals, calls, constants, implicit self)
  4. Receivers the resolver refuses (self, integers)
  5. Calls nested in another call's receiver/arguments are not checked
  6. Operators and indexing as calls; super and safe navigation as plain nodes
  7. Setter calls, keyword arguments, block arguments, block bodies
  8. Result ordering, positions, syntax errors, files on disk
"""

import os
import sys
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from responds_to.checker import ASTProcessor, Checker, check_interfaces
from responds_to.errors import RubySyntaxError, UnsupportedReceiverKind
from responds_to.findings import ARITY_MISMATCH, NO_METHOD, ArityMismatch, NoSuchMethod, Result
from responds_to.knowledge_source import StaticKnowledgeSource
from responds_to.ruby_syntax import parse_ruby

MOCK_PROJECT = os.path.join(PROJECT_ROOT, "tests", "mock_project")

UNKNOWN_METHOD_CODE = """\
module Sample
  class MyClass
    def initialize(user)
      @user = user
    end

    def name
      @user.name
    end
  end
end
"""

ARITY_CODE = """\
module Sample
  class MyClass
    def initialize(user)
      @user = user
    end

    def name
      @user.name_of(:dog, :cat) { |hello| :world }
    end
  end
end
"""


def _source(user_methods=None, **extra_classes):
    """Knowledge source mapping user -> User plus any extra var -> Class methods."""
    variable_to_class = {"user": "User"}
    method_map = {"User": user_methods or {}}
    for var_name, methods in extra_classes.items():
        class_id = var_name.capitalize()
        variable_to_class[var_name] = class_id
        method_map[class_id] = methods
    return StaticKnowledgeSource.from_dict({
        "variable_to_class": variable_to_class,
        "method_map": method_map,
    })


def _check(code, ks):
    return Checker(ks).check_interfaces(code)


def _summary(result):
    return [
        (f.kind, f.variable, f.method, getattr(f, "argument_count", None))
        for f in result
    ]


class TestUnknownMethods(unittest.TestCase):

    def test_unknown_method_is_reported(self):
        result = _check(UNKNOWN_METHOD_CODE, _source({}))
        self.assertEqual(_summary(result), [(NO_METHOD, "user", "name", None)])
        self.assertIsInstance(result.findings[0], NoSuchMethod)

    def test_known_method_is_not_reported(self):
        result = _check(UNKNOWN_METHOD_CODE, _source({"name": {"arity": 0}}))
        self.assertEqual(len(result), 0)
        self.assertFalse(result)

    def test_class_missing_from_method_map(self):
        ks = StaticKnowledgeSource.from_dict({
            "variable_to_class": {"user": "User"}, "method_map": {},
        })
        result = _check(UNKNOWN_METHOD_CODE, ks)
        self.assertEqual(_summary(result), [(NO_METHOD, "user", "name", None)])

    def test_unmapped_variable_is_ignored(self):
        ks = StaticKnowledgeSource.from_dict({"variable_to_class": {}, "method_map": {}})
        self.assertEqual(len(_check(UNKNOWN_METHOD_CODE, ks)), 0)


class TestArityMismatch(unittest.TestCase):

    def _run(self, arity):
        return _check(ARITY_CODE, _source({"name_of": {"arity": arity}}))

    def test_fewer_than_declared(self):
        result = self._run(3)
        self.assertEqual(_summary(result), [(ARITY_MISMATCH, "user", "name_of", 2)])
        self.assertIsInstance(result.findings[0], ArityMismatch)

    def test_fewer_than_open_ended_minimum(self):
        self.assertEqual(_summary(self._run(-4)), [(ARITY_MISMATCH, "user", "name_of", 2)])

    def test_more_than_declared(self):
        self.assertEqual(_summary(self._run(1)), [(ARITY_MISMATCH, "user", "name_of", 2)])

    def test_any_arity(self):
        self.assertEqual(len(self._run(-1)), 0)

    def test_open_ended_minimum_met(self):
        self.assertEqual(len(self._run(-2)), 0)

    def test_exact_arity(self):
        self.assertEqual(len(self._run(2)), 0)

    def test_missing_method_is_not_also_an_arity_mismatch(self):
        result = _check(ARITY_CODE, _source({"name": {"arity": 0}}))
        self.assertEqual(_summary(result), [(NO_METHOD, "user", "name_of", None)])


class TestReceivers(unittest.TestCase):

    def setUp(self):
        self.ks = _source({})

    def test_local_variable_receiver(self):
        code = "def run(user)\n  user.bogus\nend\n"
        self.assertEqual(_summary(_check(code, self.ks)), [(NO_METHOD, "user", "bogus", None)])

    def test_untracked_receivers_never_produce_findings(self):
        code = """\
"user".bogus
User.bogus
Admin::User.bogus
find_user(1).bogus
bogus(1, 2)
@order.bogus
"""
        self.assertEqual(len(_check(code, self.ks)), 0)

    def test_index_receiver_is_untracked(self):
        self.assertEqual(len(_check("@users[0].name\n@user[0].name\n", self.ks)), 0)

    def test_heredoc_receiver_is_untracked(self):
        self.assertEqual(len(_check("<<~X.strip\nhi\nX\n", self.ks)), 0)

    def test_self_receiver_is_rejected(self):
        with self.assertRaises(UnsupportedReceiverKind) as ctx:
            _check("def name\n  self.bogus\nend\n", self.ks)
        self.assertEqual(ctx.exception.kind, "self")
        self.assertEqual(ctx.exception.point, (2, 2))

    def test_integer_receiver_is_rejected(self):
        with self.assertRaises(UnsupportedReceiverKind):
            _check("42.to_s\n", self.ks)

    def test_scope_blind_names(self):
        """A name maps to one class everywhere in the file, whatever the scope."""
        code = """\
class A
  def one(user)
    user.bogus
  end
end

class B
  def two
    user = 3
    user.other
  end
end
"""
        result = _check(code, self.ks)
        self.assertEqual(
            _summary(result),
            [(NO_METHOD, "user", "bogus", None), (NO_METHOD, "user", "other", None)],
        )


class TestTraversalCoverage(unittest.TestCase):

    def test_call_in_arguments_is_not_checked(self):
        ks = _source({}, account={"deposit": {"arity": 1}})
        nested = "def run(account, user)\n  account.deposit(user.bogus())\nend\n"
        alone = "def run(account, user)\n  user.bogus()\nend\n"
        self.assertEqual(len(_check(nested, ks)), 0)
        self.assertEqual(_summary(_check(alone, ks)), [(NO_METHOD, "user", "bogus", None)])

    def test_call_in_receiver_is_not_checked(self):
        code = "def run(user)\n  user.profile.bogus\nend\n"
        self.assertEqual(len(_check(code, _source({}))), 0)

    def test_outer_call_is_still_checked(self):
        ks = _source({}, account={"deposit": {"arity": 1}})
        code = "def run(account, user)\n  account.deposit(user.name, 2)\nend\n"
        self.assertEqual(_summary(_check(code, ks)), [(ARITY_MISMATCH, "account", "deposit", 2)])

    def test_block_bodies_are_walked(self):
        code = "items.each { |item| @user.bogus(item) }\nitems.map do |x|\n  @user.other\nend\n"
        result = _check(code, _source({}))
        self.assertEqual(
            _summary(result),
            [(NO_METHOD, "user", "bogus", None), (NO_METHOD, "user", "other", None)],
        )

    def test_calls_inside_conditions_and_assignments(self):
        code = """\
if @user.active?
  total = @user.total(1)
end
"""
        result = _check(code, _source({"total": {"arity": 0}}))
        self.assertEqual(
            _summary(result),
            [(NO_METHOD, "user", "active?", None), (ARITY_MISMATCH, "user", "total", 1)],
        )


class TestOperatorCalls(unittest.TestCase):
    """Operators and indexing are method calls on their left operand."""

    def setUp(self):
        self.ks = _source({})

    def test_binary_operators(self):
        result = _check("@user + 1\nif @user == other\n  1\nend\n", self.ks)
        self.assertEqual(
            _summary(result), [(NO_METHOD, "user", "+", None), (NO_METHOD, "user", "==", None)]
        )
        self.assertEqual(result.findings[0].node.type, "binary")

    def test_operator_with_known_method(self):
        ks = _source({"<=>": {"arity": 1}})
        self.assertEqual(len(_check("@user <=> other\n", ks)), 0)

    def test_call_under_an_operator_is_not_checked(self):
        self.assertEqual(len(_check("@user.name + 1\n!@user.admin?\n", self.ks)), 0)

    def test_unary_operators(self):
        result = _check("!@user\n-@user\nnot @user\n", self.ks)
        self.assertEqual([f.method for f in result], ["!", "-@", "!"])

    def test_negative_literal_is_not_a_call(self):
        self.assertEqual(len(_check("total = -1\nrate = -2.5\n", self.ks)), 0)

    def test_boolean_operators_are_walked(self):
        result = _check("@user && @user.bogus\n@user.valid? || fail_hard\n", self.ks)
        self.assertEqual([f.method for f in result], ["bogus", "valid?"])

    def test_integer_left_operand_is_rejected(self):
        with self.assertRaises(UnsupportedReceiverKind):
            _check("1 + @user\n", self.ks)

    def test_index_read(self):
        ks = _source({"[]": {"arity": 1}})
        self.assertEqual(len(_check("@user[:name]\n", ks)), 0)
        self.assertEqual(
            _summary(_check("@user[1, 2]\n", ks)), [(ARITY_MISMATCH, "user", "[]", 2)]
        )
        self.assertEqual(_summary(_check("@user[0]\n", self.ks)), [(NO_METHOD, "user", "[]", None)])

    def test_index_assignment(self):
        ks = _source({"[]=": {"arity": 2}})
        self.assertEqual(len(_check("@user[:name] = 3\n", ks)), 0)
        self.assertEqual(
            _summary(_check("@user[:a, :b] = 3\n", ks)), [(ARITY_MISMATCH, "user", "[]=", 3)]
        )

    def test_index_operator_assignment_reads_the_element(self):
        result = _check("@user[:count] += 1\n", self.ks)
        self.assertEqual(_summary(result), [(NO_METHOD, "user", "[]", None)])

    def test_operator_in_arguments_is_not_checked(self):
        ks = _source({}, account={"deposit": {"arity": 1}})
        self.assertEqual(len(_check("@account.deposit(@user + 1)\n", ks)), 0)


class TestSuperAndSafeNavigation(unittest.TestCase):

    def setUp(self):
        self.ks = _source({})

    def test_super_arguments_are_walked(self):
        code = "def f\n  super(@user.bogus)\nend\n"
        self.assertEqual(_summary(_check(code, self.ks)), [(NO_METHOD, "user", "bogus", None)])

    def test_safe_navigation_call_is_not_checked(self):
        self.assertEqual(len(_check("@user&.bogus\n@user&.name = 1\n", self.ks)), 0)

    def test_safe_navigation_arguments_are_walked(self):
        result = _check("@user&.save(@user.bogus)\n", self.ks)
        self.assertEqual(_summary(result), [(NO_METHOD, "user", "bogus", None)])


class TestArgumentCounting(unittest.TestCase):

    def test_setter_call(self):
        code = '@user.name = "bob"\n'
        self.assertEqual(
            _summary(_check(code, _source({"name": {"arity": 0}}))),
            [(NO_METHOD, "user", "name=", None)],
        )
        self.assertEqual(len(_check(code, _source({"name=": {"arity": 1}}))), 0)
        self.assertEqual(
            _summary(_check(code, _source({"name=": {"arity": 2}}))),
            [(ARITY_MISMATCH, "user", "name=", 1)],
        )

    def test_keyword_pairs_are_one_argument(self):
        code = '@user.update(name: "a", age: 3)\n'
        self.assertEqual(len(_check(code, _source({"update": {"arity": 1}}))), 0)
        self.assertEqual(
            _summary(_check(code, _source({"update": {"arity": 2}}))),
            [(ARITY_MISMATCH, "user", "update", 1)],
        )

    def test_positional_plus_keywords(self):
        code = "@user.update(1, name: 2, **rest)\n"
        self.assertEqual(len(_check(code, _source({"update": {"arity": 2}}))), 0)

    def test_splat_and_block_pass_count(self):
        code = "@user.name_of(:dog, *rest, &blk)\n"
        self.assertEqual(len(_check(code, _source({"name_of": {"arity": 3}}))), 0)

    def test_call_without_parentheses(self):
        code = "@user.name_of :dog, :cat\n"
        self.assertEqual(len(_check(code, _source({"name_of": {"arity": 2}}))), 0)

    def test_no_arguments(self):
        code = "@user.name_of\n"
        self.assertEqual(
            _summary(_check(code, _source({"name_of": {"arity": -2}}))),
            [(ARITY_MISMATCH, "user", "name_of", 0)],
        )


class TestResult(unittest.TestCase):

    def test_findings_in_visitation_order(self):
        code = "@user.zeta\n@user.alpha\n@user.mid\n"
        result = _check(code, _source({}))
        self.assertEqual([f.method for f in result], ["zeta", "alpha", "mid"])
        self.assertIsInstance(result.findings, tuple)
        self.assertEqual(result.errors, result.findings)

    def test_positions(self):
        result = _check(UNKNOWN_METHOD_CODE, _source({}))
        finding = result.findings[0]
        self.assertEqual((finding.line, finding.column), (8, 6))
        self.assertEqual(finding.node.type, "call")

    def test_result_filters(self):
        code = "@user.bogus\n@user.name(1)\n"
        result = _check(code, _source({"name": {"arity": 0}}))
        self.assertEqual(len(result.no_method()), 1)
        self.assertEqual(len(result.arity_mismatches()), 1)
        self.assertIsInstance(result, Result)

    def test_syntax_error_is_rejected(self):
        with self.assertRaises(RubySyntaxError):
            _check("def broken(\n", _source({}))

    def test_module_level_entry_point_accepts_parsed_source(self):
        parsed = parse_ruby(UNKNOWN_METHOD_CODE, path="inline.rb")
        result = check_interfaces(parsed, _source({}))
        self.assertEqual(_summary(result), [(NO_METHOD, "user", "name", None)])

    def test_processor_walks_a_subtree(self):
        parsed = parse_ruby("@user.first\n@user.second\n")
        processor = ASTProcessor(_source({}), parsed)
        second_statement = parsed.root.named_children[1]
        result = processor.process(second_statement)
        self.assertEqual([f.method for f in result], ["second"])


class TestCheckFile(unittest.TestCase):

    def test_mock_project_sample(self):
        ks = StaticKnowledgeSource.from_dict({
            "variable_to_class": {"user": "User", "account": "Account"},
            "method_map": {
                "User": {"name": {"arity": 0}, "name_of": {"arity": -2}},
                "Account": {"deposit": {"arity": 1}, "balance": {"arity": 0}},
            },
        })
        result = Checker(ks).check_file(os.path.join(MOCK_PROJECT, "sample.rb"))
        self.assertEqual(
            _summary(result),
            [(ARITY_MISMATCH, "account", "deposit", 2), (NO_METHOD, "account", "withdraw", None)],
        )
        self.assertEqual([f.line for f in result], [17, 18])


if __name__ == "__main__":
    unittest.main()
