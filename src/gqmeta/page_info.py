from graphql import GraphQLBoolean, GraphQLField, GraphQLNonNull, GraphQLObjectType

PAGE_INFO_TYPE_NAME = "PageInfo"

PAGE_INFO_TYPE = GraphQLObjectType(
    name=PAGE_INFO_TYPE_NAME,
    description="Contains current paging information.",
    fields=lambda: {
        "hasNextPage": GraphQLField(GraphQLNonNull(GraphQLBoolean)),
        "hasPreviousPage": GraphQLField(GraphQLNonNull(GraphQLBoolean)),
    },
)
"""Fixed paging descriptor referenced by fields and arguments marked as paginated."""
