import dataclasses

import pytest

from fieldwork.context import (
    FieldworkContextBuilder,
    make_proj_converter,
    valid_positions,
)
from fieldwork.errors import ErrorType, GenerationError

from conftest import make_builder


def make_settings(**overrides):
    settings = {
        "nVehicles": 2,
        "numHeadlands": 4,
        "workingWidth": 6,
        "positionInGroup": -1,
        "headlandFirst": True,
        "bypassIslands": False,
        "minPathTurnRadius": 5,
    }
    settings.update(overrides)
    return settings


class TestValidPositions:
    def test_even_group_has_no_center_slot(self):
        assert valid_positions(2) == [-1, 1]
        assert valid_positions(4) == [-2, -1, 1, 2]

    def test_odd_group_has_center_slot(self):
        assert valid_positions(1) == [0]
        assert valid_positions(3) == [-1, 0, 1]
        assert valid_positions(5) == [-2, -1, 0, 1, 2]

    @pytest.mark.parametrize("n_vehicles", range(1, 9))
    def test_one_slot_per_vehicle(self, n_vehicles):
        assert len(set(valid_positions(n_vehicles))) == n_vehicles


class TestBuilder:
    def test_build_gives_frozen_context(self):
        context = make_builder().build()
        with pytest.raises(dataclasses.FrozenInstanceError):
            context.n_headlands = 10

    def test_center_defaults_to_single_vehicle_width(self):
        context = make_builder(working_width=8).build()
        assert context.center_row_spacing == 8
        assert context.center_row_width_for_adjustment == 8

    def test_setters_are_applied(self):
        builder = make_builder()
        builder.set_center_row_spacing(12)
        builder.set_center_row_width_for_adjustment(11)
        builder.set_headlands(6)
        context = builder.build()

        assert context.center_row_spacing == 12
        assert context.center_row_width_for_adjustment == 11
        assert context.n_headlands == 6

    def test_headland_overlap_reduces_headland_width(self):
        context = make_builder(working_width=6, headland_overlap_percent=10).build()
        assert context.get_headland_working_width() == pytest.approx(5.4)
        assert context.working_width == 6

    def test_start_location_is_a_tuple(self):
        context = make_builder(start_location=[10, 20]).build()
        assert context.start_location == (10, 20)

    def test_context_valid_positions(self):
        assert make_builder(n_vehicles=3, position_in_group=0).build().valid_positions() == [
            -1,
            0,
            1,
        ]

    @pytest.mark.parametrize(
        "overrides",
        [
            dict(n_vehicles=0, position_in_group=0),
            dict(n_headlands=-1),
            dict(working_width=0),
            dict(turning_radius=-1),
            dict(headland_overlap_percent=100),
            dict(headland_overlap_percent=-5),
            dict(position_in_group=0),
            dict(position_in_group=2),
            dict(n_vehicles=3, position_in_group=-2),
        ],
    )
    def test_invalid_settings_are_rejected(self, overrides):
        with pytest.raises(GenerationError) as e:
            make_builder(**overrides).build()
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA

    def test_invalid_center_spacing_is_rejected(self):
        builder = make_builder()
        builder.set_center_row_spacing(0)
        with pytest.raises(GenerationError) as e:
            builder.build()
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA


class TestFromSettings:
    def test_reads_payload_settings(self):
        builder = FieldworkContextBuilder.from_settings(
            make_settings(headlandClockwise=False, rowAngleDeg=30), (1, 2)
        )
        context = builder.build()

        assert context.n_vehicles == 2
        assert context.n_headlands == 4
        assert context.working_width == 6.0
        assert context.position_in_group == -1
        assert context.headland_first is True
        assert context.bypass_islands is False
        assert context.turning_radius == 5.0
        assert context.start_location == (1, 2)
        assert context.headland_clockwise is False
        assert context.row_angle_deg == 30

    def test_optional_settings_have_defaults(self):
        context = FieldworkContextBuilder.from_settings(make_settings(), (0, 0)).build()
        assert context.headland_clockwise is True
        assert context.headland_overlap_percent == 0
        assert context.row_angle_deg is None

    def test_missing_setting(self):
        settings = make_settings()
        del settings["positionInGroup"]
        with pytest.raises(GenerationError) as e:
            FieldworkContextBuilder.from_settings(settings, (0, 0))
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA
        assert "positionInGroup" in e.value.error.message

    @pytest.mark.parametrize(
        "key", ["headlandFirst", "bypassIslands", "headlandClockwise"]
    )
    @pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
    def test_flags_must_be_booleans(self, key, value):
        with pytest.raises(GenerationError) as e:
            FieldworkContextBuilder.from_settings(make_settings(**{key: value}), (0, 0))
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA
        assert key in e.value.error.message

    def test_false_flags_are_read_as_false(self):
        context = FieldworkContextBuilder.from_settings(
            make_settings(headlandFirst=False, bypassIslands=False), (0, 0)
        ).build()
        assert context.headland_first is False
        assert context.bypass_islands is False


class TestProjection:
    def test_topcon_round_trip(self):
        converter = make_proj_converter(
            {"type": "TOPCON", "zone": 56, "hemisphere": "SOUTH"}
        )
        x, y = converter(150.5, -27.5)
        # southern hemisphere northings carry the false northing
        assert 5_000_000 < y < 10_000_000
        assert converter(x, y, inverse=True) == pytest.approx((150.5, -27.5))

    def test_unknown_projection(self):
        with pytest.raises(GenerationError) as e:
            make_proj_converter({"type": "somewhere"})
        assert e.value.error.error_type == ErrorType.BAD_INPUT_DATA
