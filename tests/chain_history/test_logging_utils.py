"""Logging utility tests."""

import logging

from chain_history.logging_utils import get_component_logger, mask_params, mask_value


class TestMasking:
    """Tests for credential masking."""

    def test_mask_value(self):
        assert mask_value("ABCDEFGHIJ") == "ABCD...***"
        assert mask_value("abc") == "***"
        assert mask_value("") == "***"

    def test_mask_params(self):
        masked = mask_params({"apikey": "SECRETKEY", "address": "0xabc", "page": "1"})
        assert masked == {"apikey": "SECR...***", "address": "0xabc", "page": "1"}

    def test_mask_params_empty(self):
        assert mask_params(None) == {}


class TestComponentLogger:
    """Tests for get_component_logger."""

    def test_child_of_injected(self):
        parent = logging.getLogger("app")
        assert get_component_logger(parent, "etherscan", "x").name == "app.etherscan"

    def test_default_when_not_injected(self):
        logger = get_component_logger(None, "etherscan", "chain_history.providers.etherscan")
        assert logger.name == "chain_history.providers.etherscan"
