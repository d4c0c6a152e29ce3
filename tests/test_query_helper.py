import pytest
from bson import ObjectId

from cmscore.core.exceptions import ValidationException
from cmscore.services.query_helper import QueryHelper

PARENT_ID = "65f1c0a2e4b0a1b2c3d4e5a1"


def test_content_filter_splits_node_and_language_fields():
    content_filter = QueryHelper.get_content_filter(
        {"parentId": PARENT_ID, "isDeleted": False, "language": "en", "status": 4, "name": None}
    )

    assert content_filter == {
        "parentId": ObjectId(PARENT_ID),
        "isDeleted": False,
        "contentLanguages": {"$elemMatch": {"language": "en", "status": 4}},
    }


def test_content_filter_converts_id_lists():
    content_filter = QueryHelper.get_content_filter({"_id": {"$in": [PARENT_ID, "not-an-id"]}})
    assert content_filter["_id"] == {"$in": [ObjectId(PARENT_ID), "not-an-id"]}


def test_language_filter_prefixes_fields_and_properties():
    language_filter = QueryHelper.get_content_language_filter(
        {"language": "en", "parentId": PARENT_ID, "properties": {"color": "red"}}
    )
    assert language_filter == {
        "contentLanguages.language": "en",
        "contentLanguages.properties.color": "red",
    }


def test_projection_from_string():
    projection = QueryHelper.get_content_projection("name, parentId, +status, unknown")
    assert projection == {
        "contentLanguages.name": 1,
        "parentId": 1,
        "contentLanguages.status": 1,
    }


def test_exclusion_projection_from_string():
    projection = QueryHelper.get_content_projection("-properties,-childItems")
    assert projection == {"contentLanguages.properties": 0, "contentLanguages.childItems": 0}


def test_mixed_projection_is_rejected():
    with pytest.raises(ValidationException):
        QueryHelper.get_content_projection("name,urlSegment,-properties")
    with pytest.raises(ValidationException):
        QueryHelper.get_content_projection({"parentId": 1, "properties": 0})


def test_audit_fields_are_projected_on_both_levels():
    projection = QueryHelper.get_content_projection({"updatedAt": 1})
    assert projection == {"updatedAt": 1, "contentLanguages.updatedAt": 1}


def test_no_projection_when_nothing_requested():
    assert QueryHelper.get_content_projection(None) == {}
    pipeline = QueryHelper.build_pipeline({"isDeleted": False})
    assert [list(stage)[0] for stage in pipeline] == ["$match", "$unwind"]


def test_sort_keeps_order_and_appends_created_at():
    sort = QueryHelper.get_combined_content_sort("name,-startPublish")
    assert list(sort.items()) == [
        ("contentLanguages.name", 1),
        ("contentLanguages.startPublish", -1),
        ("createdAt", -1),
    ]


def test_sort_mapping_with_named_directions():
    sort = QueryHelper.get_combined_content_sort({"createdAt": "asc", "properties": {"rank": "desc"}})
    assert sort == {"createdAt": 1, "contentLanguages.properties.rank": -1}


def test_invalid_sort_direction():
    with pytest.raises(ValidationException):
        QueryHelper.parse_sort({"name": "sideways"})


def test_pipeline_with_language_match_and_projection():
    pipeline = QueryHelper.build_pipeline({"language": "en"}, "name")
    assert pipeline[2] == {"$match": {"contentLanguages.language": "en"}}
    assert pipeline[3] == {"$project": {"contentLanguages.name": 1}}


def test_page_stages():
    stages = QueryHelper.page_stages("-createdAt", page=2, limit=10)
    assert stages[1:] == [{"$skip": 10}, {"$limit": 10}]
    assert QueryHelper.page_count(25, 10) == 3
    assert QueryHelper.page_count(0, 10) == 0


@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0)])
def test_page_stages_reject_invalid_paging(page, limit):
    with pytest.raises(ValidationException):
        QueryHelper.page_stages(None, page, limit)
