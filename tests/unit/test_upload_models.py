"""Tests for upload models."""
import pytest

from romup.core.upload import (
    RomFile,
    CandidateStatus,
    DuplicateCheckResult,
    PerFileResult,
    BatchProgress,
    UploadCandidate,
    UploadBatch,
    PipelineRunResult,
    OutcomeClass,
)


class TestRomFile:

    def test_from_path(self, rom_dir):
        file = RomFile.from_path(rom_dir / 'mario.nes')

        assert file.name == 'mario.nes'
        assert file.size == 64
        assert file.last_modified > 0
        assert file.path == rom_dir / 'mario.nes'

    def test_from_path_string_and_custom_name(self, rom_dir):
        file = RomFile.from_path(str(rom_dir / 'mario.nes'), name='Super Mario.nes')

        assert file.name == 'Super Mario.nes'

    def test_from_path_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RomFile.from_path(tmp_path / 'missing.nes')

    def test_from_path_directory(self, tmp_path):
        with pytest.raises(ValueError):
            RomFile.from_path(tmp_path)

    def test_from_bytes(self):
        file = RomFile.from_bytes('a.gb', b'1234', last_modified=5)

        assert file.size == 4
        assert file.last_modified == 5
        assert file.data == b'1234'

    def test_display_size(self):
        assert RomFile(name='a.nes', size=50 * 1024).display_size == '50 KB'


class TestCandidateStatus:

    def test_values(self):
        assert CandidateStatus.NEEDS_PLATFORM_SELECTION.value == 'needs-platform-selection'
        assert CandidateStatus.DUPLICATE_CHECK == 'duplicate-check'

    @pytest.mark.parametrize("status", [
        CandidateStatus.SUCCEEDED,
        CandidateStatus.FAILED,
        CandidateStatus.REJECTED,
        CandidateStatus.DISCARDED,
    ])
    def test_terminal(self, status):
        assert status.is_terminal

    def test_duplicate_not_terminal(self):
        assert not CandidateStatus.DUPLICATE.is_terminal


class TestResponseModels:

    def test_duplicate_check_from_dict(self):
        result = DuplicateCheckResult.from_dict({'isDuplicate': True, 'existingRom': 'bad'})

        assert result.is_duplicate
        assert result.existing_record is None

    def test_per_file_result_from_dict(self):
        result = PerFileResult.from_dict({
            'fileName': 'mario.nes', 'success': True, 'message': 'ok',
            'romId': 42, 'platformId': 1, 'platformName': 'NES', 'filePath': '/roms/nes/mario.nes'
        })

        assert result.file_name == 'mario.nes'
        assert result.rom_id == 42
        assert result.platform_name == 'NES'

    def test_batch_progress_percentage(self):
        assert BatchProgress(50, 200).percentage == 25.0
        assert BatchProgress(0, 0).percentage == 0.0
        assert BatchProgress(300, 200).percentage == 100.0


class TestUploadCandidate:

    def test_mark_keeps_error_unless_given(self, make_rom):
        candidate = UploadCandidate(id=0, file=make_rom('a.nes'))

        candidate.mark(CandidateStatus.FAILED, 'boom')
        candidate.mark(CandidateStatus.FAILED)

        assert candidate.error == 'boom'

    def test_snapshot_is_detached(self, make_rom):
        candidate = UploadCandidate(id=0, file=make_rom('a.nes'))
        snapshot = candidate.snapshot()

        candidate.mark(CandidateStatus.READY)

        assert snapshot.status == CandidateStatus.PENDING

    def test_batch_totals(self, make_rom):
        batch = UploadBatch(platform_id=1, files=[
            UploadCandidate(id=0, file=make_rom('a.nes', b'12')),
            UploadCandidate(id=1, file=make_rom('b.nes', b'345')),
        ])

        assert batch.total_bytes == 5
        assert batch.file_names == ['a.nes', 'b.nes']
        assert len(batch) == 2


class TestPipelineRunResult:

    def _candidates(self, make_rom, *statuses):
        return [
            UploadCandidate(id=i, file=make_rom(f'{i}.nes'), status=status)
            for i, status in enumerate(statuses)
        ]

    def test_counts(self, make_rom):
        result = PipelineRunResult.from_candidates(self._candidates(
            make_rom,
            CandidateStatus.SUCCEEDED, CandidateStatus.FAILED, CandidateStatus.DUPLICATE,
            CandidateStatus.REJECTED, CandidateStatus.NEEDS_PLATFORM_SELECTION, CandidateStatus.DISCARDED,
        ))

        assert (result.succeeded, result.failed, result.skipped_as_duplicate) == (1, 1, 1)
        assert (result.rejected, result.needs_platform_selection) == (1, 1)
        assert len(result.per_file_results) == 6
        assert len(result.by_status(CandidateStatus.DISCARDED)) == 1

    def test_all_succeeded(self, make_rom):
        result = PipelineRunResult.from_candidates(self._candidates(make_rom, CandidateStatus.SUCCEEDED))

        assert result.outcome == OutcomeClass.ALL_SUCCEEDED
        assert result.summary()[0] == 'Upload Completed Successfully'

    def test_partial(self, make_rom):
        result = PipelineRunResult.from_candidates(
            self._candidates(make_rom, CandidateStatus.SUCCEEDED, CandidateStatus.FAILED)
        )

        assert result.outcome == OutcomeClass.PARTIAL
        title, message = result.summary()
        assert title == 'Upload Completed with Errors'
        assert '1 file(s) failed' in message

    def test_all_failed(self, make_rom):
        result = PipelineRunResult.from_candidates(self._candidates(make_rom, CandidateStatus.FAILED))

        assert result.outcome == OutcomeClass.ALL_FAILED
        assert result.summary()[0] == 'Upload Failed'

    def test_duplicates_only(self, make_rom):
        result = PipelineRunResult.from_candidates(self._candidates(make_rom, CandidateStatus.DUPLICATE))

        assert result.outcome == OutcomeClass.NOTHING_UPLOADED
        assert result.summary()[0] == 'No New Files to Upload'

    def test_nothing(self):
        assert PipelineRunResult().summary()[0] == 'Nothing Uploaded'
