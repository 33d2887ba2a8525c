import logging

from vidscout.logger import configure


def test_configure_replaces_handlers_and_writes_file(tmp_path):
    log_file = tmp_path / "vidscout.log"
    try:
        configure(level="DEBUG")
        lg = configure(level="DEBUG", log_file=log_file, log_format="%(levelname)s %(message)s")
        assert len(lg.handlers) == 2
        assert lg.level == logging.DEBUG
        assert logging.getLogger("aiohttp.access").level == logging.WARNING

        lg.debug("found %d videos", 3)
        for handler in lg.handlers:
            handler.flush()
        assert "DEBUG found 3 videos" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in logging.getLogger("VidScout").handlers:
            handler.close()
        configure(level="INFO")
