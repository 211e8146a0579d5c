from menu_portal.models.submission import Submission, SubmissionStatus, SubmissionFlow
