"""GraphQL documents used by the automerge agent."""

from __future__ import annotations

__all__ = [
    "APPROVE_PULL_REQUEST_MUTATION",
    "FIND_PULL_REQUEST_BY_BRANCH_QUERY",
    "FIND_PULL_REQUEST_COMMITS_QUERY",
    "MERGE_PULL_REQUEST_MUTATION",
    "pull_request_info_query",
]

_PULL_REQUEST_FIELDS = (
    "id",
    "number",
    "title",
    "headRefName",
    "author { login }",
    "state",
    "merged",
    "mergeable",
)

_REVIEW_FIELDS = "reviews(last: 1, states: APPROVED) { edges { node { state } } }"


def pull_request_info_query(*, merge_info_preview: bool) -> str:
    """Return the pull request snapshot query.

    ``mergeStateStatus`` is only requested when the merge-info preview is
    enabled because GitHub rejects the field otherwise.
    """
    fields = [
        *_PULL_REQUEST_FIELDS,
        *(["mergeStateStatus"] if merge_info_preview else []),
        _REVIEW_FIELDS,
    ]
    body = "\n      ".join(fields)
    return f"""
query FindPullRequestInfoByNumber(
  $repositoryOwner: String!,
  $repositoryName: String!,
  $pullRequestNumber: Int!
) {{
  repository(owner: $repositoryOwner, name: $repositoryName) {{
    pullRequest(number: $pullRequestNumber) {{
      {body}
    }}
  }}
}}
"""


FIND_PULL_REQUEST_BY_BRANCH_QUERY = """
query FindPullRequestByHeadReferenceName(
  $repositoryOwner: String!,
  $repositoryName: String!,
  $referenceName: String!
) {
  repository(owner: $repositoryOwner, name: $repositoryName) {
    pullRequests(headRefName: $referenceName, states: OPEN, first: 1) {
      nodes {
        number
      }
    }
  }
}
"""

FIND_PULL_REQUEST_COMMITS_QUERY = """
query FindPullRequestCommits(
  $pullRequestId: ID!,
  $pageSize: Int!,
  $endCursor: String
) {
  node(id: $pullRequestId) {
    ... on PullRequest {
      commits(first: $pageSize, after: $endCursor) {
        edges {
          node {
            commit {
              author {
                user {
                  login
                }
              }
              messageHeadline
              signature {
                isValid
              }
            }
          }
        }
        pageInfo {
          endCursor
          hasNextPage
        }
      }
    }
  }
}
"""

APPROVE_PULL_REQUEST_MUTATION = """
mutation ApprovePullRequest($pullRequestId: ID!) {
  addPullRequestReview(input: {pullRequestId: $pullRequestId, event: APPROVE}) {
    clientMutationId
  }
}
"""

MERGE_PULL_REQUEST_MUTATION = """
mutation MergePullRequest(
  $pullRequestId: ID!,
  $commitHeadline: String!,
  $mergeMethod: PullRequestMergeMethod!
) {
  mergePullRequest(
    input: {
      pullRequestId: $pullRequestId,
      commitHeadline: $commitHeadline,
      mergeMethod: $mergeMethod
    }
  ) {
    clientMutationId
  }
}
"""
