import asyncio
import base64
import os

import pytest
from bromato.core.dispatcher import execute_locator_chain
from bromato.core.errors import PayloadValidationError
from bromato.core.grammar import Instruction
from bromato.layers.middleware.file_upload import FileUploadStager, strip_data_uri

HELLO = {"extension": "txt", "content": "SGVsbG8gd29ybGQh"}
MARKDOWN = {"extension": "md", "content": "I0hlbGxvIG1hcmtkb3duIQ=="}


def upload(value):
    return {"type": "action", "operation": "setInputFiles", "value": value}


def read_all(directory):
    return [open(os.path.join(directory, name), encoding="utf-8").read() for name in os.listdir(directory)]


def test_single_descriptor_becomes_one_path(tmp_path):
    upload_dir = tmp_path / "uploads"

    chain = FileUploadStager(upload_dir)([upload(HELLO)])

    files = os.listdir(upload_dir)
    assert len(files) == 1
    assert files[0].endswith(".txt")
    assert read_all(upload_dir) == ["Hello world!"]
    assert chain[0].value == [str((upload_dir / files[0]).resolve())]


def test_multiple_descriptors(tmp_path):
    chain = FileUploadStager(tmp_path)([upload([HELLO, MARKDOWN])])

    paths = chain[0].value
    assert len(paths) == 2
    assert all(isinstance(p, str) for p in paths)
    assert sorted(read_all(tmp_path)) == ["#Hello markdown!", "Hello world!"]
    assert {os.path.splitext(p)[1] for p in paths} == {".txt", ".md"}


def test_data_uri_header_is_stripped(tmp_path):
    encoded = base64.b64encode(b"\x89PNG fake").decode()
    chain = FileUploadStager(tmp_path)([
        upload({"extension": ".png", "content": f"data:image/png;base64,{encoded}"}),
    ])

    path = chain[0].value[0]
    assert path.endswith(".png") and not path.endswith("..png")
    with open(path, "rb") as f:
        assert f.read() == b"\x89PNG fake"


def test_strip_data_uri_leaves_plain_base64():
    assert strip_data_uri("SGk=") == "SGk="
    assert strip_data_uri("data:text/plain;base64,SGk=") == "SGk="


def test_other_nodes_pass_through(tmp_path):
    query = Instruction.from_dict({"type": "getBy", "operation": "label", "value": "Resume"})
    click = Instruction.from_dict({"type": "action", "operation": "click"})

    chain = FileUploadStager(tmp_path)([query, upload(HELLO), click])

    assert chain[0] is query
    assert chain[2] is click
    assert len(chain[1].value) == 1


def test_caller_payload_is_not_mutated(tmp_path):
    node = upload(HELLO)
    FileUploadStager(tmp_path)([node])
    assert node["value"] == HELLO


def test_invalid_descriptors_abort_the_whole_rewrite(tmp_path):
    upload_dir = tmp_path / "uploads"

    with pytest.raises(PayloadValidationError) as exc_info:
        FileUploadStager(upload_dir)([
            upload(HELLO),
            upload([{"extension": "txt"}, {"extension": 3, "content": "SGk="}]),
        ])

    issues = exc_info.value.issues
    assert len(issues) == 2
    assert {issue["loc"][:3] for issue in issues} == {(1, "value", 0), (1, "value", 1)}
    assert not upload_dir.exists()


def test_non_base64_content_is_rejected(tmp_path):
    with pytest.raises(PayloadValidationError, match="base64"):
        FileUploadStager(tmp_path)([upload({"extension": "txt", "content": "not base64!"})])
    assert os.listdir(tmp_path) == []


def test_extension_cannot_escape_target_dir(tmp_path):
    with pytest.raises(PayloadValidationError):
        FileUploadStager(tmp_path / "uploads")([upload({"extension": "/../../evil", "content": "SGk="})])


def test_missing_value_is_a_payload_error(tmp_path):
    with pytest.raises(PayloadValidationError, match="at least one file"):
        FileUploadStager(tmp_path)([{"type": "action", "operation": "setInputFiles"}])


def test_batch_validates_every_chain_before_writing(tmp_path):
    with pytest.raises(PayloadValidationError):
        FileUploadStager(tmp_path)([
            [upload(HELLO)],
            [upload("resume.pdf")],
        ])
    assert os.listdir(tmp_path) == []


def test_batch_shape_is_preserved(tmp_path):
    result = FileUploadStager(tmp_path)([
        [upload(HELLO)],
        [{"type": "getter", "operation": "count"}],
    ])

    assert len(result) == 2
    assert len(result[0][0].value) == 1
    assert result[1][0].value is None


def test_staged_paths_reach_set_input_files(page, tmp_path):
    asyncio.run(execute_locator_chain(
        page,
        [{"type": "getBy", "operation": "label", "value": "Attachment"}, upload([HELLO, MARKDOWN])],
        middlewares=[FileUploadStager(tmp_path)],
    ))

    method, args, _ = page.calls[-1]
    assert method == "set_input_files"
    assert len(args[0]) == 2
    assert all(os.path.dirname(p) == str(tmp_path.resolve()) for p in args[0])


def test_batch_through_dispatcher_writes_nothing_on_bad_payload(page, tmp_path):
    button = {"type": "getBy", "operation": "role", "value": "button"}

    with pytest.raises(PayloadValidationError):
        asyncio.run(execute_locator_chain(
            page,
            [[button, upload(HELLO)], [button, upload("resume.pdf")]],
            middlewares=[FileUploadStager(tmp_path)],
        ))

    assert os.listdir(tmp_path) == []
    assert page.calls == []


def test_batch_through_dispatcher_stages_every_chain(page, tmp_path):
    asyncio.run(execute_locator_chain(
        page,
        [[upload(HELLO)], [upload(MARKDOWN)]],
        middlewares=[FileUploadStager(tmp_path)],
    ))

    staged = [args[0] for method, args, _ in page.calls if method == "set_input_files"]
    assert len(staged) == 2
    assert sorted(read_all(tmp_path)) == ["#Hello markdown!", "Hello world!"]
