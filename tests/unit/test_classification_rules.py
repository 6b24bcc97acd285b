from pii_agent.classification import rules


class TestLocationSignals:
    def test_address_keyword_is_case_insensitive(self) -> None:
        assert rules.has_address_keyword("Lives on Elm STREET")

    def test_address_keyword_with_punctuation(self) -> None:
        assert rules.has_address_keyword("12 Elm St. is nice")

    def test_postal_code(self) -> None:
        assert rules.has_postal_code("code 10001-1234")
        assert not rules.has_postal_code("call 1234")

    def test_relative_location(self) -> None:
        assert rules.has_relative_location("the shop across from the bank")


class TestNumericSignals:
    def test_numeric_ratio_without_letters(self) -> None:
        assert rules.numeric_ratio("12345") == 5.0

    def test_numeric_heavy_threshold(self) -> None:
        assert rules.is_numeric_heavy("ab 123")
        assert not rules.is_numeric_heavy("abcdefgh 1")

    def test_clock_time(self) -> None:
        assert rules.has_clock_time("at 10:30 am")
        assert rules.has_clock_time("at 9pm")
        assert not rules.has_clock_time("at nine")

    def test_date(self) -> None:
        assert rules.has_date("on 1/2/24")

    def test_reference_id(self) -> None:
        assert rules.has_reference_id("ticket AB1234")
        assert not rules.has_reference_id("ticket ab1234")


class TestCitySignals:
    def test_hyphenated_name(self) -> None:
        assert rules.has_hyphenated_name("Mary Smith-Jones")

    def test_city_keyword(self) -> None:
        assert rules.has_city_keyword("the old town square")
        assert not rules.has_city_keyword("electricity bill")

    def test_list_of_places_needs_comma_and_six_capitalized_words(self) -> None:
        assert rules.has_list_of_places("Paris, London, Berlin, Madrid, Vienna, Prague")
        assert not rules.has_list_of_places("Paris London Berlin Madrid Vienna Prague")


class TestWesternSignals:
    def test_many_western_names(self) -> None:
        assert rules.has_many_western_names("John Carter, Mary Stone and Peter Parker")
        assert not rules.has_many_western_names("John Carter and Mary Stone")

    def test_province_keyword(self) -> None:
        assert rules.has_province_keyword("the prefecture office")


class TestRuleTable:
    def test_rule_order(self) -> None:
        assert [rule.name for rule in rules.RULES] == ["location", "numeric", "city", "western"]

    def test_first_match_returns_first_firing_signal(self) -> None:
        location = rules.RULES[0]
        assert location.first_match("zip 10001 on Main Street") == "address_keyword"
        assert location.first_match("code 10001") == "postal_code"
        assert location.first_match("nothing here") is None
