"""Stage-named errors raised by the carrier page protocols.

Each error names the stage where the automation broke so the gateway's
wrapped message pinpoints it.
"""


class PageProtocolError(Exception):
    stage = "unknown"

    def __init__(self, message: str):
        super().__init__(f"[{self.stage}] {message}")
        self.detail = message


class CredentialsMissing(PageProtocolError):
    stage = "login"


class LoginButtonNotFound(PageProtocolError):
    stage = "login"


class LoginFieldNotFound(PageProtocolError):
    stage = "login"


class LoginRejected(PageProtocolError):
    stage = "login"


class LoginTimedOut(PageProtocolError):
    stage = "login"


class SingleApplicationFormNotReached(PageProtocolError):
    stage = "open_form"


class AddressBookNotReached(PageProtocolError):
    stage = "open_form"


class RecipientNameNotSeparated(PageProtocolError):
    stage = "fill_order"


class FormFieldNotFound(PageProtocolError):
    stage = "fill_order"


class NextButtonNotFound(PageProtocolError):
    stage = "fill_order"


class ConfirmationNotDetected(PageProtocolError):
    stage = "confirmation"


class RegistrationButtonNotFound(PageProtocolError):
    stage = "confirmation"


class PaymentControlNotFound(PageProtocolError):
    stage = "payment"


class PrintAgreementFailed(PageProtocolError):
    stage = "print"


class PrintButtonNotFound(PageProtocolError):
    stage = "print"


class PdfDownloadFailed(PageProtocolError):
    stage = "download"


class TrackingNumberNotFound(PageProtocolError):
    stage = "extract"


class ClickPostDryRunCompleted(Exception):
    """Automation reached the confirmation screen and stopped before payment.

    Not an error: raised on purpose in dry-run mode so an operator can finish
    the payment by hand.
    """

    def __init__(self, order_id: str):
        super().__init__(f"確認画面まで到達しました。支払いは手動で完了してください: {order_id}")
        self.order_id = order_id
