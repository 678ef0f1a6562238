"""Unit tests for the gst-device-monitor output parser."""

import pytest

from camera_fleet.core.capabilities import (
    Atom,
    CapParseError,
    Choice,
    LineKind,
    Range,
    classify_line,
    parse_cap,
    parse_cap_parameters,
    parse_device_monitor_output,
    set_nested,
)


class TestClassifyLine:

    def test_device_marker(self):
        assert classify_line("Device found:").kind is LineKind.DEVICE_START

    def test_field_header(self):
        line = classify_line("    caps  : image/jpeg, width=(int)640")
        assert line.kind is LineKind.FIELD
        assert line.key == "caps"
        assert line.value.strip() == "image/jpeg, width=(int)640"

    def test_property(self):
        line = classify_line("        device.path = /dev/video0")
        assert line.kind is LineKind.PROPERTY
        assert line.key == "device.path"
        assert line.value == "/dev/video0"

    def test_property_value_with_colons_is_not_a_field(self):
        line = classify_line("        device.bus_path = pci-0000:00:14.0-usb-0:1:1.0")
        assert line.kind is LineKind.PROPERTY

    def test_launch_line(self):
        line = classify_line("    gst-launch-1.0 v4l2src device=/dev/video0 ! fakesink")
        assert line.kind is LineKind.LAUNCH
        assert line.value == "v4l2src"

    def test_caps_continuation(self):
        line = classify_line("            image/jpeg, width=(int)1280, height=(int)720")
        assert line.kind is LineKind.CONTINUATION


class TestSetNested:

    def test_creates_intermediate_dicts(self):
        tree = {}
        assert set_nested(tree, "api.v4l2.path", "/dev/video2")
        assert tree == {"api": {"v4l2": {"path": "/dev/video2"}}}

    def test_scalar_conflict_is_skipped(self):
        tree = {}
        set_nested(tree, "a.b", "1")
        assert not set_nested(tree, "a.b.c", "2")
        assert tree == {"a": {"b": "1"}}

    def test_siblings_share_parent(self):
        tree = {}
        set_nested(tree, "device.path", "/dev/video0")
        set_nested(tree, "device.api", "v4l2")
        assert tree == {"device": {"path": "/dev/video0", "api": "v4l2"}}


class TestParseCapParameters:

    def test_typed_atoms(self):
        params = parse_cap_parameters("width=(int)1920, height=(int)1080, framerate=(fraction)30/1")
        assert params["width"] == Atom("1920", "int")
        assert params["height"] == Atom("1080", "int")
        assert params["framerate"] == Atom("30/1", "fraction")

    def test_untyped_atom(self):
        assert parse_cap_parameters("format=YUY2")["format"] == Atom("YUY2", None)

    def test_choice_strips_item_types(self):
        params = parse_cap_parameters("framerate={ (fraction)30/1, (fraction)15/1 }, width=(int)640")
        assert params["framerate"] == Choice(("30/1", "15/1"), None)
        assert params["width"] == Atom("640", "int")

    def test_range_with_denominators(self):
        params = parse_cap_parameters("framerate=(fraction)[ 5/1, 30/1 ]")
        assert params["framerate"] == Range(min="5", max="30", mindenom="1", maxdenom="1", value_type="fraction")

    def test_range_with_step(self):
        params = parse_cap_parameters("width=(int)[ 16, 4096, 2 ]")
        value = params["width"]
        assert isinstance(value, Range)
        assert (value.min, value.max, value.step) == ("16", "4096", "2")
        assert value.maxdenom is None

    def test_malformed_range_raises(self):
        with pytest.raises(CapParseError):
            parse_cap_parameters("framerate=(fraction)[ oops ]")

    def test_malformed_choice_raises(self):
        with pytest.raises(CapParseError):
            parse_cap_parameters("framerate={ (fraction)30/1")


class TestParseCap:

    def test_type_and_parameters(self):
        cap = parse_cap("image/jpeg, width=(int)640, height=(int)480, framerate=(fraction)30/1")
        assert cap.type == "image/jpeg"
        assert set(cap.parameters) == {"width", "height", "framerate"}

    def test_no_separator_contributes_nothing(self):
        assert parse_cap("image/jpeg") is None

    def test_malformed_parameters_give_empty_set(self):
        cap = parse_cap("image/jpeg, framerate=(fraction)[ nope ]")
        assert cap.type == "image/jpeg"
        assert cap.parameters == {}


class TestParseDeviceMonitorOutput:

    def test_three_devices(self, monitor_output):
        devices = parse_device_monitor_output(monitor_output)
        assert len(devices) == 3

    def test_fields_and_type(self, monitor_output):
        first = parse_device_monitor_output(monitor_output)[0]
        assert first.type == "v4l2src"
        assert first.name == "HD Pro Webcam C920"
        assert first.fields["class"] == ["Video/Source"]
        assert len(first.fields["caps"]) == 4

    def test_properties_tree(self, monitor_output):
        first = parse_device_monitor_output(monitor_output)[0]
        assert first.properties["device"]["path"] == "/dev/video0"
        assert first.properties["udev-probed"] == "true"
        assert first.properties["v4l2"]["device"]["driver"] == "uvcvideo"
        assert first.device_path == "/dev/video0"

    def test_caps_parsed(self, monitor_output):
        first = parse_device_monitor_output(monitor_output)[0]
        assert [cap.type for cap in first.caps] == ["video/x-raw", "image/jpeg", "image/jpeg", "image/jpeg"]
        assert isinstance(first.caps[3].parameters["framerate"], Choice)

    def test_pipewire_path_fallback(self, monitor_output):
        second = parse_device_monitor_output(monitor_output)[1]
        assert second.type == "pipewiresrc"
        assert second.device_path == "/dev/video2"

    def test_device_without_path(self, monitor_output):
        third = parse_device_monitor_output(monitor_output)[2]
        assert third.device_path is None

    def test_tabs_and_spaces_are_equivalent(self):
        spaced = (
            "Device found:\n"
            "    name  : Cam\n"
            "    properties:\n"
            "        device.path = /dev/video4\n"
        )
        tabbed = spaced.replace("        ", "\t\t").replace("    ", "\t")
        assert parse_device_monitor_output(tabbed)[0].properties == parse_device_monitor_output(spaced)[0].properties

    def test_empty_and_unrelated_output(self):
        assert parse_device_monitor_output("") == []
        assert parse_device_monitor_output("Probing devices...\n\n") == []

    def test_empty_field_value_is_empty_list(self):
        devices = parse_device_monitor_output("Device found:\n    caps  :\n")
        assert devices[0].fields["caps"] == []
        assert devices[0].caps == []
