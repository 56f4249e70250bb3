import pytest

from models import status
from models.transfer_file import TransferFile
from models.transfer_folder import TransferFolder
from pipeline.job_queue import FILE_QUEUE, FOLDER_QUEUE, PROCESS_FILE, SCAN_FOLDER
from services.errors import NotFound
from services.transfer_service import TransferService


@pytest.fixture
def service(folders, files, queue):
    return TransferService(folders, files, queue)


def _folder_with_files(folders, files, statuses):
    folder = folders.create(TransferFolder.create_new(url="https://drive/folders/F1", name="Course"))
    created = []
    for i, file_status in enumerate(statuses):
        file = TransferFile.create_new(folder.id, f"https://drive/file/d/v{i}/view", f"clip{i}")
        file.status = file_status
        created.append(files.create(file))
    return folder, created


def test_create_folder_scan_queues_scan_job(service, queue) -> None:
    folder = service.create_folder_scan("https://drive.google.com/drive/folders/F1")

    assert folder.id is not None
    assert folder.status == status.PENDING
    assert folder.name == "Transfer"

    job = queue.claim(FOLDER_QUEUE)
    assert job.name == SCAN_FOLDER
    assert job.data == {"folderId": folder.id, "folderUrl": folder.url}


def test_create_folder_scan_keeps_given_name(service) -> None:
    folder = service.create_folder_scan("https://drive.google.com/drive/folders/F1", "Mine")
    assert folder.name == "Mine"


def test_list_folder_files_unknown_folder(service) -> None:
    with pytest.raises(NotFound):
        service.list_folder_files(42)


def test_process_pending_queues_only_pending(service, folders, files, queue) -> None:
    _, created = _folder_with_files(
        folders, files, [status.PENDING, status.COMPLETED, status.PENDING, status.FAILED]
    )

    assert service.process_pending_files() == 2

    queued = []
    while (job := queue.claim(FILE_QUEUE)) is not None:
        assert job.name == PROCESS_FILE
        queued.append(job.data["fileId"])
    assert sorted(queued) == sorted([created[0].id, created[2].id])


def test_process_pending_with_nothing_pending(service) -> None:
    assert service.process_pending_files() == 0


def test_retry_failed_resets_and_summarizes(service, folders, files, queue) -> None:
    _, created = _folder_with_files(folders, files, [status.FAILED, status.COMPLETED, status.FAILED])

    result = service.retry_failed_files()

    assert result["count"] == 2
    assert {f["id"] for f in result["files"]} == {created[0].id, created[2].id}
    assert set(result["files"][0]) == {"id", "name", "originalUrl"}
    for file in (created[0], created[2]):
        assert files.get(file.id).status == status.PENDING
    assert queue.counts()[FILE_QUEUE]["queued"] == 2


def test_retry_failed_respects_retry_cap(folders, files, queue) -> None:
    _, created = _folder_with_files(folders, files, [status.FAILED])
    exhausted = created[0]
    exhausted.retry_count = 3
    files.update(exhausted)

    result = TransferService(folders, files, queue, max_retries=3).retry_failed_files()

    assert result["count"] == 0
    assert files.get(exhausted.id).status == status.FAILED


def test_retry_file(service, folders, files, queue) -> None:
    _, (failed, done) = _folder_with_files(folders, files, [status.FAILED, status.COMPLETED])

    assert service.retry_file(failed.id) is True
    assert service.retry_file(done.id) is False
    assert service.retry_file(999) is False

    job = queue.claim(FILE_QUEUE)
    assert job.data == {"fileId": failed.id}
    assert queue.claim(FILE_QUEUE) is None


def test_process_pending_twice_does_not_duplicate_jobs(service, folders, files, queue) -> None:
    _folder_with_files(folders, files, [status.PENDING, status.PENDING])

    assert service.process_pending_files() == 2
    assert service.process_pending_files() == 0

    assert queue.counts()[FILE_QUEUE]["queued"] == 2
