"""Tests for defaults loading and notices."""

import logging

from demarray import config
from demarray.notices import Notice, NoticeKind, emit


class TestConfig:

    def test_defaults_loaded(self):
        assert config.get('align.strict') is False
        assert config.get('collapse.quantile_probs') == [0.025, 0.25, 0.5, 0.75, 0.975]

    def test_missing_path_default(self):
        assert config.get('align.missing', 'fallback') == 'fallback'
        assert config.get('nope.deeper.still') is None

    def test_load_missing_file(self, tmp_path):
        assert config.load(tmp_path / 'absent.yaml') == {}

    def test_load_file(self, tmp_path):
        path = tmp_path / 'custom.yaml'
        path.write_text("align:\n  strict: true\n")
        assert config.load(path) == {'align': {'strict': True}}


class TestNotices:

    def test_to_dict(self):
        notice = Notice(NoticeKind.TRIMMED, 'age', operand='x', detail='dropped')
        assert notice.to_dict() == {
            'kind': 'trimmed',
            'dimension': 'age',
            'operand': 'x',
            'detail': 'dropped',
        }

    def test_emit_logs(self, caplog):
        with caplog.at_level(logging.INFO, logger='demarray.notices'):
            notice = emit(NoticeKind.UNDEFINED_MEAN, 'sex', detail='1 cell(s)')
        assert notice.kind is NoticeKind.UNDEFINED_MEAN
        assert "undefined_mean: dimension 'sex'" in caplog.text
