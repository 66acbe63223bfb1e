"""Application errors raised by label issuance before any carrier is contacted."""


class OrderNotFound(Exception):
    def __init__(self, order_id: str):
        super().__init__(f"対象注文が見つかりません: {order_id}")
        self.order_id = order_id


class InvalidLabelIssueInput(Exception):
    """The request itself is malformed, e.g. an unknown shipping method."""


class InvalidLabelIssueOperation(Exception):
    """The order is in a state that does not allow a label to be issued."""
