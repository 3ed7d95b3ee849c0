from graphql import GraphQLBoolean, GraphQLNonNull, GraphQLObjectType

from gqmeta.page_info import PAGE_INFO_TYPE, PAGE_INFO_TYPE_NAME


def test_page_info_type() -> None:
    assert isinstance(PAGE_INFO_TYPE, GraphQLObjectType)
    assert PAGE_INFO_TYPE.name == PAGE_INFO_TYPE_NAME == "PageInfo"
    assert PAGE_INFO_TYPE.description == "Contains current paging information."
    assert set(PAGE_INFO_TYPE.fields) == {"hasNextPage", "hasPreviousPage"}
    for field in PAGE_INFO_TYPE.fields.values():
        assert isinstance(field.type, GraphQLNonNull)
        assert field.type.of_type is GraphQLBoolean
