"""Admin GraphQL documents used by the app."""

from simple_bundler.models.pydantic_models import MAPPING_KEY, MAPPING_NAMESPACE

GET_PRODUCT_VARIANTS = """
query GetProductVariants($id: ID!) {
  product(id: $id) {
    id
    variants(first: 100) {
      nodes {
        id
        title
        selectedOptions { name value }
      }
    }
  }
}
"""

PRODUCTS_BY_ID = """
query ProductsById($ids: [ID!]!) {
  nodes(ids: $ids) {
    ... on Product {
      id
      title
      handle
      status
      options { name optionValues { name } }
    }
  }
}
"""

PRODUCTS_FOR_BUNDLE = """
query ProductsForBundle($first: Int!) {
  products(first: $first) {
    edges {
      node { id title handle status }
    }
  }
}
"""

PRODUCT_WITH_MAPPING_CHECK = f"""
query ProductWithMappingCheck($id: ID!) {{
  product(id: $id) {{
    id
    variants(first: 100) {{
      nodes {{
        id
        metafield(namespace: "{MAPPING_NAMESPACE}", key: "{MAPPING_KEY}") {{
          id
        }}
      }}
    }}
  }}
}}
"""

CREATE_PRODUCT = """
mutation CreateBundleProduct($input: ProductInput!) {
  productCreate(input: $input) {
    product { id title handle status }
    userErrors { field message }
  }
}
"""

UPDATE_PRODUCT = """
mutation UpdateBundleProduct($input: ProductInput!) {
  productUpdate(input: $input) {
    product { id title handle status }
    userErrors { field message }
  }
}
"""

DELETE_PRODUCT = """
mutation DeleteProduct($input: ProductDeleteInput!) {
  productDelete(input: $input) {
    deletedProductId
    userErrors { field message }
  }
}
"""

SET_COMPONENTS_METAFIELDS = """
mutation SetComponentsMetafields($metafields: [MetafieldsSetInput!]!) {
  metafieldsSet(metafields: $metafields) {
    userErrors { field message }
    metafields { id namespace key }
  }
}
"""

CREATE_PRODUCT_OPTION = """
mutation CreateOption($productId: ID!, $options: [OptionCreateInput!]!) {
  productOptionsCreate(productId: $productId, options: $options, variantStrategy: CREATE) {
    userErrors { field message }
  }
}
"""

PRODUCT_OPTION_IDS = """
query ProductOptionIds($id: ID!) {
  product(id: $id) {
    id
    options { id name }
  }
}
"""

# POSITION keeps the first variant, which becomes the default variant
DELETE_PRODUCT_OPTIONS = """
mutation DeleteOptions($productId: ID!, $options: [ID!]!) {
  productOptionsDelete(productId: $productId, options: $options, strategy: POSITION) {
    deletedOptionsIds
    userErrors { field message }
  }
}
"""
