import pytest

from invoicecommit.logging_config import submission_id_var


@pytest.fixture(autouse=True)
def _reset_submission_id():
    token = submission_id_var.set('')
    yield
    submission_id_var.reset(token)
