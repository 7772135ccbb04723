import logging

from provisioner.logging import configure_logging, get_logger, redact


def test_redact_known_token_shapes():
    text = "token ghp_" + "A" * 36 + " and github_pat_" + "b" * 30 + " stay hidden"

    out = redact(text)

    assert "ghp_A" not in out
    assert "github_pat_b" not in out
    assert out.count("[REDACTED]") == 2
    assert out.endswith("stay hidden")


def test_redact_leaves_plain_text_alone():
    assert redact("nothing secret here") == "nothing secret here"


def test_configure_logging_replaces_handler():
    first = logging.NullHandler()
    second = logging.NullHandler()

    configure_logging(logging.DEBUG, handler=first)
    configure_logging(logging.WARNING, handler=second)

    root = get_logger()
    assert root.handlers == [second]
    assert root.level == logging.WARNING
    assert get_logger("tokens").name == "provisioner.tokens"
