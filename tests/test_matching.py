from types import SimpleNamespace

from broker_remover.services.matching import (
    CATEGORY_WEIGHTS,
    DEFAULT_LIMIT,
    domain_adjustment,
    email_domain,
    score_broker,
    score_brokers,
    string_hash,
)


def broker(name, category="people-search", **extra):
    return SimpleNamespace(name=name, category=category, **extra)


def test_string_hash_matches_32bit_multiply_add():
    assert string_hash("") == 0
    assert string_hash("a") == 97
    assert string_hash("ab") == 97 * 31 + 98
    assert string_hash("hello") == 99162322
    # wraps to the most negative 32-bit value
    assert string_hash("polygenelubricants") == -2147483648


def test_string_hash_uses_utf16_code_units():
    # U+1F600 is a surrogate pair: 0xD83D 0xDE00
    assert string_hash("\U0001F600") == 0xD83D * 31 + 0xDE00


def test_score_is_deterministic():
    catalog = [broker(f"Broker {i}", category) for i, category in enumerate(CATEGORY_WEIGHTS)]

    first = score_brokers("jane@gmail.com", catalog)
    second = score_brokers("jane@gmail.com", catalog)

    assert [(m.broker.name, m.score) for m in first] == [(m.broker.name, m.score) for m in second]


def test_scores_are_bounded_and_flagged():
    catalog = [broker(f"Broker {i}", category) for i in range(10) for category in CATEGORY_WEIGHTS]

    for email in ("jane@gmail.com", "clerk@agency.gov", "prof@school.edu", "ops@acme.io", "nobody"):
        for match in score_brokers(email, catalog, limit=len(catalog)):
            assert 0 <= match.score <= 100
            assert match.has_user_data == (match.score > 50)


def test_result_is_capped():
    catalog = [broker(f"Broker {i}") for i in range(40)]
    assert len(score_brokers("jane@gmail.com", catalog)) == DEFAULT_LIMIT

    small = catalog[:4]
    assert len(score_brokers("jane@gmail.com", small)) == 4


def test_empty_catalog():
    assert score_brokers("jane@gmail.com", []) == []


def test_results_sorted_and_ties_keep_catalog_order():
    first = broker("Same Name", "marketing", id=1)
    second = broker("Same Name", "marketing", id=2)
    catalog = [broker("Other", "other"), first, second]

    matches = score_brokers("jane@example.com", catalog)

    scores = [m.score for m in matches]
    assert scores == sorted(scores, reverse=True)
    tied = [m.broker.id for m in matches if m.broker.name == "Same Name"]
    assert tied == [1, 2]


def test_email_without_at_sign_has_no_domain():
    assert email_domain("nobody") == ""
    assert email_domain("someone@") == ""
    assert email_domain("Jane@GMail.com") == "gmail.com"
    assert domain_adjustment("", "people-search") == 0


def test_domain_adjustments():
    assert domain_adjustment("gmail.com", "people-search") == 10
    assert domain_adjustment("yahoo.com", "financial") == 0
    assert domain_adjustment("school.edu", "marketing") == -10
    assert domain_adjustment("school.edu", "background-check") == 10
    assert domain_adjustment("agency.gov", "people-search") == -25
    assert domain_adjustment("agency.gov", "financial") == -15
    assert domain_adjustment("acme.io", "risk-management") == 10
    assert domain_adjustment("acme.com", "risk-management") == 0


def test_score_adds_weight_to_hash_base():
    b = broker("Spokeo", "people-search")
    base = abs(string_hash("jane@acme.com" + "Spokeo")) % 51
    assert score_broker("jane@acme.com", b) == base + 20


def test_unknown_category_scores_as_other():
    b = broker("Mystery", "not-a-category")
    base = abs(string_hash("jane@acme.com" + "Mystery")) % 51
    assert score_broker("jane@acme.com", b) == base + CATEGORY_WEIGHTS["other"]


def test_gmail_scenario_people_search_outranks_financial():
    catalog = [broker(f"People Finder {i}", "people-search") for i in range(20)]
    catalog += [broker(f"Bank Screen {i}", "financial") for i in range(20)]

    matches = score_brokers("jane@gmail.com", catalog)
    assert len(matches) <= 15

    people = [score_broker("jane@gmail.com", b) for b in catalog if b.category == "people-search"]
    financial = [score_broker("jane@gmail.com", b) for b in catalog if b.category == "financial"]
    assert sum(people) / len(people) > sum(financial) / len(financial)
