import base64

from scripts.generate_room import save_data_uri


def test_save_data_uri_writes_decoded_image(tmp_path):
    output = tmp_path / "room.png"
    data_uri = "data:image/png;base64," + base64.b64encode(b"\x89PNG-bytes").decode()

    size = save_data_uri(data_uri, output)

    assert size == len(b"\x89PNG-bytes")
    assert output.read_bytes() == b"\x89PNG-bytes"
