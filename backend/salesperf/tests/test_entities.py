"""Tests for entity keys, merge rules and the Volume/Amount join."""
from salesperf.analytics.entities import (
    EntityKey,
    EntityRecord,
    MergeRule,
    apply_merge_rules,
    join_datasets,
)


def test_entity_key_normalization():
    assert EntityKey.of("  Acme Corp* ") == EntityKey.of("acme corp")
    assert EntityKey.of("Acme**").value == "acme"
    assert str(EntityKey.of(None)) == ""


def test_merge_sums_multiple_matches():
    """Two matches are summed into one starred record ahead of the rest."""
    records = [
        EntityRecord("Alpha", (1, 2)),
        EntityRecord("beta", (10, 20)),
        EntityRecord("Gamma", (5,)),
    ]
    rule = MergeRule("ALPHA group", ("alpha", "Gamma"))
    merged = apply_merge_rules(records, [rule])

    assert [r.name for r in merged] == ["Alpha Group*", "beta"]
    assert merged[0].raw_values == (6.0, 2.0)


def test_merge_single_match_renames():
    records = [EntityRecord("alpha", (1, 2)), EntityRecord("beta", (3, 4))]
    merged = apply_merge_rules(records, [MergeRule("alpha co", ("ALPHA",))])
    assert merged[0].name == "Alpha Co*"
    assert merged[0].raw_values == (1, 2)


def test_merge_without_match_leaves_data():
    records = [EntityRecord("alpha", (1,))]
    assert apply_merge_rules(records, [MergeRule("x", ("nobody",))]) == records
    assert apply_merge_rules(records, []) == records


def test_join_by_key_not_position():
    """Rows in a different order still pair up by key."""
    volume = [EntityRecord("A", (1, 2)), EntityRecord("B", (3, 4))]
    amount = [EntityRecord("b*", (30, 40)), EntityRecord("a", (10, 20))]
    result = join_datasets(volume, amount, 2)

    assert [e.name for e in result.entities] == ["A", "B"]
    assert result.entities[0].amount_at(1) == 20
    assert result.entities[1].amount_at(0) == 30
    assert not result.unmatched_volume
    assert not result.unmatched_amount


def test_join_reports_missing_sides():
    """A missing side reads as zeros and is reported."""
    volume = [EntityRecord("A", (1, 2))]
    amount = [EntityRecord("C", (5, 6))]
    result = join_datasets(volume, amount, 2)

    assert [e.name for e in result.entities] == ["A", "C"]
    assert result.entities[0].amount_at(0) == 0
    assert result.entities[1].volume_at(1) == 0
    assert result.unmatched_volume == ("A",)
    assert result.unmatched_amount == ("C",)


def test_join_sums_duplicates_and_pads_short_rows():
    volume = [EntityRecord("A", (1, 2)), EntityRecord("a ", (1,)), EntityRecord("B", (1, 1, 9))]
    amount = [EntityRecord("A", (1, 1)), EntityRecord("B", ("x", 2))]
    result = join_datasets(volume, amount, 2)

    a, b = result.entities
    assert a.volume.raw_values == (2.0, 2.0)
    assert b.volume.raw_values == (1.0, 1.0)
    assert b.amount_at(0) == 0
    assert result.duplicate_keys == ("volume:a",)
    assert set(result.schema_mismatches) == {"volume:a ", "volume:B"}
