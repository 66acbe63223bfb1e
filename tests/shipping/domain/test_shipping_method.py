import pytest
from shipping.label.method import ShippingMethod


class TestShippingMethodParse:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("click_post", ShippingMethod.CLICK_POST),
            ("yamato_compact", ShippingMethod.YAMATO_COMPACT),
            ("  click_post ", ShippingMethod.CLICK_POST),
        ],
    )
    def test_supported_methods(self, value, expected):
        assert ShippingMethod.parse(value) is expected

    def test_unknown_method_names_the_value(self):
        with pytest.raises(ValueError) as exc_info:
            ShippingMethod.parse("sagawa")
        assert "不正な配送方法です: sagawa" in str(exc_info.value)
        assert "click_post / yamato_compact" in str(exc_info.value)

    def test_none_is_rejected(self):
        with pytest.raises(ValueError):
            ShippingMethod.parse(None)
