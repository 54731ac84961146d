"""GraphQL documents used by the ingest functions."""
from __future__ import annotations

CLOSED_ISSUES_QUERY = """
query($owner: String!, $name: String!, $since: DateTime!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    issues(first: 100, after: $cursor, states: CLOSED, filterBy: {since: $since}) {
      pageInfo { hasNextPage endCursor }
      nodes {
        number
        title
        url
        closedAt
        labels(first: 10) { nodes { name color url } }
        author { login }
      }
    }
  }
}
"""

MERGED_PULL_REQUESTS_QUERY = """
query($owner: String!, $name: String!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: 100, after: $cursor, states: MERGED, orderBy: {field: UPDATED_AT, direction: DESC}) {
      pageInfo { hasNextPage endCursor }
      nodes {
        number
        title
        url
        mergedAt
        updatedAt
        labels(first: 10) { nodes { name color url } }
        author { login }
      }
    }
  }
}
"""

DISCUSSION_COMMENTS_QUERY = """
query($owner: String!, $name: String!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    discussions(first: 50, after: $cursor, orderBy: {field: UPDATED_AT, direction: DESC}) {
      pageInfo { hasNextPage endCursor }
      nodes {
        updatedAt
        author { login }
        comments(last: 100) {
          nodes {
            createdAt
            author { login }
          }
        }
      }
    }
  }
}
"""

ISSUE_COMMENTS_QUERY = """
query($owner: String!, $name: String!, $since: DateTime!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    issues(first: 50, after: $cursor, filterBy: {since: $since}) {
      pageInfo { hasNextPage endCursor }
      nodes {
        author { login }
        comments(last: 100) {
          nodes {
            createdAt
            author { login }
          }
        }
      }
    }
  }
}
"""
