"""Clearing and rebuilding a single tour's itinerary tree."""

from tourseed.catalog import TourPlan
from tourseed.db.models import Tag, TourDay, TourTag
from tourseed.db.repositories import TourRepository
from tourseed.services.outcomes import TourOutcome
from tourseed.services.tree_builder import attach_tags, build_tour_tree, clear_tour_tree

from conftest import item, tour_entry, tree_counts


def test_clear_removes_children_before_parents(db, add_tour, add_tree):
    tour = add_tour("Test Tour", city_name="Rome")
    add_tree(tour.id, tour.city_id, items=3)
    tag = Tag(name="history")
    db.add(tag)
    db.flush()
    db.add(TourTag(tour_id=tour.id, tag_id=tag.id))
    db.commit()

    deleted = clear_tour_tree(TourRepository(db), tour.id)
    db.commit()

    assert deleted == {"items": 3, "blocks": 1, "days": 1, "tags": 1}
    assert tree_counts(db, tour.id) == (0, 0, 0)
    assert db.query(Tag).count() == 1


def test_clear_on_empty_tour_is_a_no_op(db, add_tour):
    tour = add_tour("Test Tour")

    deleted = clear_tour_tree(TourRepository(db), tour.id)

    assert deleted == {"items": 0, "blocks": 0, "days": 0, "tags": 0}


def test_clear_leaves_other_tours_alone(db, add_tour, add_tree):
    keep = add_tour("Keep", city_name="Oslo")
    add_tree(keep.id, keep.city_id, items=2)
    wipe = add_tour("Wipe", city_name="Rome")
    add_tree(wipe.id, wipe.city_id, items=1)

    clear_tour_tree(TourRepository(db), wipe.id)
    db.commit()

    assert tree_counts(db, keep.id) == (1, 1, 2)
    assert tree_counts(db, wipe.id) == (0, 0, 0)


def test_build_counts_rows(db, add_tour):
    tour = add_tour("Test Tour", city_name="Rome")
    plan = TourPlan.model_validate(tour_entry(days=[
        {"day": 1, "blocks": [{"time": "09:00 - 10:00", "items": [item("A"), item("B")]}]},
        {"day": 2, "blocks": [
            {"time": "09:00 - 10:00", "items": []},
            {"time": "11:00 - 12:00", "items": [item("C")]},
        ]},
    ]))
    outcome = TourOutcome(title="Test Tour", tour_id=tour.id, city_id=tour.city_id,
                          duration_value=plan.duration_days)

    build_tour_tree(db, outcome, plan)
    db.commit()

    assert (outcome.days_created, outcome.blocks_created, outcome.items_created) == (2, 3, 3)
    assert outcome.items_planned == 3
    assert outcome.complete
    assert tree_counts(db, tour.id) == (2, 3, 3)
    assert [d.day_number for d in db.query(TourDay).order_by(TourDay.day_number)] == [1, 2]


def test_attach_tags_reports_each_link(db, add_tour):
    tour = add_tour("Test Tour")
    tags = [Tag(name="a"), Tag(name="b")]
    db.add_all(tags)
    db.flush()

    results = attach_tags(db, tour.id, [t.id for t in tags])
    db.commit()

    assert all(r.ok for r in results)
    assert [r.row_id for r in results] == [t.id for t in tags]
    assert db.query(TourTag).count() == 2
