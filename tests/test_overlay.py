"""
End-to-end tests for the overlay pipeline and its command line.
"""

import pytest
from PIL import Image

from conftest import gpx_document, loop_samples
from gpx_overlay.errors import DegenerateTrackError, InvalidArgumentError, MalformedInputError
from gpx_overlay.overlay import main, parse_args, render_overlay


class TestRenderOverlay:
    def test_writes_square_png(self, loop_gpx, make_image, tmp_path):
        out = render_overlay(loop_gpx, make_image((240, 180)), tmp_path / "out.png", "@rider", progress=False)

        with Image.open(out) as written:
            assert written.format == "PNG"
            assert written.size == (180, 180)

    def test_portrait_uses_width(self, loop_gpx, make_image, tmp_path):
        out = render_overlay(loop_gpx, make_image((150, 260)), tmp_path / "out.png", progress=False)
        with Image.open(out) as written:
            assert written.size == (150, 150)

    def test_track_changes_the_photo(self, loop_gpx, make_image, tmp_path):
        photo = make_image((200, 200))
        out = render_overlay(loop_gpx, photo, tmp_path / "out.png", progress=False)
        with Image.open(photo) as before, Image.open(out) as after:
            assert list(before.convert("RGB").getdata()) != list(after.convert("RGB").getdata())

    def test_png_output_is_deterministic(self, loop_gpx, make_image, tmp_path):
        photo = make_image((200, 160))
        first = render_overlay(loop_gpx, photo, tmp_path / "a.png", "@rider", progress=False)
        second = render_overlay(loop_gpx, photo, tmp_path / "b.png", "@rider", progress=False)
        assert first.read_bytes() == second.read_bytes()

    def test_other_suffix_writes_jpeg(self, loop_gpx, make_image, tmp_path):
        out = render_overlay(loop_gpx, make_image(), tmp_path / "share.jpeg", progress=False)
        assert out.read_bytes()[:2] == b"\xff\xd8"

    def test_reports_stages(self, loop_gpx, make_image, tmp_path, capsys):
        render_overlay(loop_gpx, make_image(), tmp_path / "out.png", progress=False)
        out = capsys.readouterr().out
        for stage in ("Reading GPX file", "Reading image file", "Preparing the data", "Rendering metrics", "Writing image file"):
            assert stage in out

    @pytest.mark.parametrize("gpx_name, image_name", [("ride.txt", "photo.png"), ("ride.gpx", "photo.bmp")])
    def test_wrong_extension(self, tmp_path, gpx_name, image_name):
        (tmp_path / gpx_name).write_text("<gpx/>")
        Image.new("RGB", (10, 10)).save(tmp_path / image_name, format="PNG")
        with pytest.raises(InvalidArgumentError):
            render_overlay(tmp_path / gpx_name, tmp_path / image_name, tmp_path / "out.png", progress=False)

    def test_missing_files(self, loop_gpx, make_image, tmp_path):
        with pytest.raises(FileNotFoundError, match="Unreadable GPX file"):
            render_overlay(tmp_path / "nope.gpx", make_image(), tmp_path / "out.png", progress=False)
        with pytest.raises(FileNotFoundError, match="Unreadable image file"):
            render_overlay(loop_gpx, tmp_path / "nope.jpg", tmp_path / "out.png", progress=False)

    def test_duplicate_timestamps_abort_without_output(self, make_gpx, make_image, tmp_path):
        gpx = make_gpx([(0, 0, 100, 0), (0, 0.001, 100, 0)])
        target = tmp_path / "out.png"
        with pytest.raises(MalformedInputError):
            render_overlay(gpx, make_image(), target, progress=False)
        assert not target.exists()

    def test_single_point_track_fails(self, make_gpx, make_image, tmp_path):
        with pytest.raises(MalformedInputError):
            render_overlay(make_gpx([(0, 0, 100, 0)]), make_image(), tmp_path / "out.png", progress=False)

    def test_stationary_track_is_degenerate(self, make_gpx, make_image, tmp_path):
        gpx = make_gpx([(47.0, 8.0, 400, 0), (47.0, 8.0, 400, 5), (47.0, 8.0, 400, 10)])
        target = tmp_path / "out.png"
        with pytest.raises(DegenerateTrackError):
            render_overlay(gpx, make_image(), target, progress=False)
        assert not target.exists()

    def test_east_west_track_still_renders(self, make_gpx, make_image, tmp_path):
        gpx = make_gpx([(0, 0, 100, 0), (0, 0.001, 100.1, 10)])
        out = render_overlay(gpx, make_image(), tmp_path / "out.png", progress=False)
        assert out.exists()


class TestCommandLine:
    def test_defaults(self):
        args = parse_args(["-g", "ride.gpx", "-i", "sky.jpg"])
        assert str(args.output) == "out.jpg"
        assert args.athlete == ""

    def test_long_flags(self):
        args = parse_args(["--gpx", "r.gpx", "--image", "s.png", "--output", "o.png", "--athlete", "@me"])
        assert (str(args.gpx), str(args.image), str(args.output), args.athlete) == ("r.gpx", "s.png", "o.png", "@me")

    def test_gpx_and_image_are_required(self):
        with pytest.raises(SystemExit):
            parse_args(["-i", "sky.jpg"])

    def test_main_success(self, make_gpx, make_image, tmp_path, capsys):
        gpx = make_gpx(loop_samples(12))
        out = tmp_path / "share.png"
        assert main(["-g", str(gpx), "-i", str(make_image()), "-o", str(out), "-a", "@rider"]) == 0
        assert out.exists()
        assert "Done!" in capsys.readouterr().out

    def test_main_reports_undecodable_gpx(self, make_image, tmp_path, capsys):
        gpx = tmp_path / "ride.gpx"
        gpx.write_bytes(gpx_document(loop_samples(4)).replace("Ride", "Zürich").encode("latin-1"))
        out = tmp_path / "share.png"

        assert main(["-g", str(gpx), "-i", str(make_image()), "-o", str(out)]) == 1
        assert "Error Unparsable GPX file" in capsys.readouterr().out
        assert not out.exists()

    def test_main_accepts_zoneless_times(self, make_image, tmp_path):
        document = gpx_document(loop_samples(6))
        gpx = tmp_path / "ride.gpx"
        gpx.write_text(document.replace("08:00:25Z", "08:00:25"), encoding="utf-8")
        out = tmp_path / "share.png"
        assert main(["-g", str(gpx), "-i", str(make_image()), "-o", str(out)]) == 0
        assert out.exists()

    def test_main_failure_prints_error(self, tmp_path, capsys):
        assert main(["-g", str(tmp_path / "ride.fit"), "-i", str(tmp_path / "sky.jpg")]) == 1
        assert "Error Incorrect GPX file name" in capsys.readouterr().out
