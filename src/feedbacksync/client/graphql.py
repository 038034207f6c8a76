"""GraphQL documents for the ``Submission`` and ``Notification`` models.

All submission operations select the same fields so that
``Record.from_payload`` always sees the same shape.
"""

from __future__ import annotations

SUBMISSION_FIELDS = """
      id
      ownerId
      serviceCategory
      title
      description
      suggestion
      rating
      attachmentKey
      status
      urgency
      internalNotes
      updatedByRole
      updatedById
      updatedByName
      respondedAt
      createdAt
      updatedAt
      replies { fromRole message byId byName at }
"""

GET_SUBMISSION = f"""
  query GetSubmission($id: ID!) {{
    getSubmission(id: $id) {{{SUBMISSION_FIELDS}    }}
  }}
"""

UPDATE_SUBMISSION = f"""
  mutation UpdateSubmission($input: UpdateSubmissionInput!) {{
    updateSubmission(input: $input) {{{SUBMISSION_FIELDS}    }}
  }}
"""

DELETE_SUBMISSION = """
  mutation DeleteSubmission($input: DeleteSubmissionInput!) {
    deleteSubmission(input: $input) {
      id
    }
  }
"""

# Full-payload push; the backend does not filter by id.
ON_UPDATE_SUBMISSION = f"""
  subscription OnUpdateSubmission {{
    onUpdateSubmission {{{SUBMISSION_FIELDS}    }}
  }}
"""

CREATE_NOTIFICATION = """
  mutation CreateNotification($input: CreateNotificationInput!) {
    createNotification(input: $input) {
      id
    }
  }
"""
