"""
GraphQL documents for the Shopify Admin API.
"""

PRODUCT_FIELDS = """
    id
    title
    descriptionHtml
    onlineStoreUrl
    status
    createdAt
    updatedAt
    images(first: 1) {
      edges {
        node {
          src
        }
      }
    }
    metafields(first: 150) {
      edges {
        node {
          namespace
          key
          value
        }
      }
    }
    variants(first: 20) {
      edges {
        node {
          id
          title
          sku
          price
        }
      }
    }
"""

PRODUCT_BY_ID_QUERY = f"""
query getProduct($id: ID!) {{
  product(id: $id) {{
    {PRODUCT_FIELDS}
  }}
}}
"""

PRODUCT_BY_SKU_QUERY = f"""
query getProductBySku($query: String!, $first: Int!) {{
  productVariants(first: $first, query: $query) {{
    edges {{
      node {{
        sku
        product {{
          {PRODUCT_FIELDS}
        }}
      }}
    }}
  }}
}}
"""

PRODUCTS_PAGE_QUERY = f"""
query getProducts($first: Int!, $cursor: String, $query: String) {{
  products(first: $first, after: $cursor, query: $query) {{
    edges {{
      cursor
      node {{
        {PRODUCT_FIELDS}
      }}
    }}
    pageInfo {{
      hasNextPage
    }}
  }}
}}
"""
