"""Unit tests for app.services.policy_rules: default + market rules, law references."""

import unittest

from app.services.policy_rules import (
    MARKET_LAW_REFERENCES,
    POLICY_RULES,
    get_market_law_reference,
    get_policy_rules,
    list_markets,
)


class TestGetPolicyRules(unittest.TestCase):
    """Markets get the default rules followed by their own."""

    def test_default_market_has_four_rules(self) -> None:
        rules = get_policy_rules("default")
        self.assertEqual(
            [r.category for r in rules],
            [
                "Medical Claims",
                "CBD / Controlled Substances",
                "Superlatives & Guarantees",
                "Weight Loss Claims",
            ],
        )

    def test_market_rules_appended_after_defaults(self) -> None:
        rules = get_policy_rules("uk")
        self.assertEqual(len(rules), 5)
        self.assertEqual(rules[-1].category, "Medicinal Claims (MHRA)")
        self.assertEqual(rules[0].category, "Medical Claims")

    def test_market_lookup_is_case_insensitive(self) -> None:
        self.assertEqual(get_policy_rules("US"), get_policy_rules("us"))
        self.assertEqual(get_policy_rules(" Us ")[-1].category, "FDA Compliance")

    def test_unknown_market_gets_defaults_only(self) -> None:
        self.assertEqual(get_policy_rules("zz"), list(POLICY_RULES["default"]))
        self.assertEqual(get_policy_rules(""), list(POLICY_RULES["default"]))

    def test_every_market_includes_default_rules(self) -> None:
        defaults = get_policy_rules("default")
        for market in list(POLICY_RULES) + ["ca", "zz"]:
            self.assertEqual(get_policy_rules(market)[: len(defaults)], defaults, market)

    def test_returned_list_does_not_alias_table(self) -> None:
        rules = get_policy_rules("eu")
        rules.clear()
        self.assertEqual(len(get_policy_rules("eu")), 5)

    def test_rule_keywords_are_lower_case(self) -> None:
        for rules in POLICY_RULES.values():
            for rule in rules:
                for keyword in rule.keywords:
                    self.assertEqual(keyword, keyword.lower())


class TestMarketLawReference(unittest.TestCase):
    def test_known_market(self) -> None:
        ref = get_market_law_reference("au")
        self.assertEqual(ref.law, "Australia ACCC advertising rules & TGA code")
        self.assertTrue(ref.url.startswith("https://www.tga.gov.au/"))

    def test_unknown_market_falls_back_to_default(self) -> None:
        self.assertEqual(get_market_law_reference("br"), MARKET_LAW_REFERENCES["default"])
        self.assertEqual(get_market_law_reference(None), MARKET_LAW_REFERENCES["default"])

    def test_canada_has_law_but_no_extra_rules(self) -> None:
        self.assertIn("Canada", get_market_law_reference("CA").law)
        self.assertEqual(len(get_policy_rules("ca")), 4)

    def test_list_markets(self) -> None:
        self.assertEqual(list_markets(), ["au", "ca", "default", "eu", "uk", "us"])


if __name__ == "__main__":
    unittest.main()
