# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for layout parameter extraction from user text."""

import pytest

from vastuflow.agent.parameter_normalizer import (
    ROOMS_2BHK,
    ROOMS_3BHK,
    GeneratedParameters,
    ParameterNormalizer,
    build_directive,
    feet_to_meters,
    sqft_to_sqm,
)


@pytest.fixture
def normalizer():
    return ParameterNormalizer()


class TestUnitConversion:
    def test_feet_to_meters(self):
        assert feet_to_meters(30) == 9.144
        assert feet_to_meters(0) == 0

    def test_sqft_to_sqm(self):
        assert sqft_to_sqm(1076.4) == 100.0
        assert sqft_to_sqm(400) == pytest.approx(37.16, abs=0.01)


class TestNormalize:
    """Tests for ParameterNormalizer.normalize."""

    def test_feet_pair(self, normalizer):
        """'30x30 ft' converts to metres with facing and BHK applied."""
        params = normalizer.normalize("30x30 ft east facing 2BHK")
        assert params.width_m == 9.144
        assert params.height_m == 9.144
        assert params.orientation == "east"
        assert params.bhk == 2
        assert params.rooms == ROOMS_2BHK
        assert params.display_dimensions == [9.1, 9.1]

    def test_feet_pair_with_by(self, normalizer):
        params = normalizer.normalize("a 30 by 40 feet plot, 3BHK, west")
        assert (params.width_m, params.height_m) == (9.144, 12.192)
        assert params.orientation == "west"
        assert params.rooms == ROOMS_3BHK
        assert params.display_dimensions == [9.1, 12.2]

    def test_truncated_second_dimension_is_square(self, normalizer):
        """'30 ft by 3' is read as a cut-off '30 ft by 30'."""
        params = normalizer.normalize("30 ft by 3")
        assert params.width_m == params.height_m == 9.144

    def test_metre_pair(self, normalizer):
        params = normalizer.normalize("plot of 9m x 12m")
        assert (params.width_m, params.height_m) == (9.0, 12.0)

    def test_square_feet_area(self, normalizer):
        """A bare area becomes a square plot."""
        params = normalizer.normalize("400 sq ft house")
        assert params.width_m == params.height_m == 6.096

    def test_square_metre_area(self, normalizer):
        params = normalizer.normalize("100 sqm plot")
        assert params.width_m == params.height_m == 10.0

    def test_defaults(self, normalizer):
        """No cardinal means north; no BHK means the 3BHK room list."""
        params = normalizer.normalize("20x20 ft")
        assert params.orientation == "north"
        assert params.bhk is None
        assert params.rooms == ROOMS_3BHK

    @pytest.mark.parametrize("text", ["", "design me a house", "3BHK east facing"])
    def test_no_dimensions(self, normalizer, text):
        assert normalizer.normalize(text) is None

    def test_rooms_list_is_a_copy(self, normalizer):
        params = normalizer.normalize("20x20 ft 2bhk")
        params.rooms.append("garage")
        assert "garage" not in ROOMS_2BHK


class TestDetection:
    def test_facing_preferred_over_first_cardinal(self, normalizer):
        assert normalizer.detect_orientation("north road, south facing") == "south"

    def test_detect_facing_requires_phrase(self, normalizer):
        assert normalizer.detect_facing("north road") is None
        assert normalizer.detect_facing("East Facing plot") == "east"

    def test_detect_bhk(self, normalizer):
        assert normalizer.detect_bhk("need a 4 BHK") == 4
        assert normalizer.detect_bhk("a villa") is None


class TestHeuristic:
    """Tests for the fallback heuristic."""

    def test_defaults_from_current_plot(self, normalizer):
        params = normalizer.heuristic("design a house", 30.0, 30.0)
        assert params.bhk == 2
        assert params.rooms == ["living_room", "kitchen", "master_bedroom", "bedroom", "bathroom"]
        assert params.width_m == 30.0
        assert params.height_m == 30.0
        assert params.orientation is None

    def test_three_bhk_gets_two_bathrooms(self, normalizer):
        params = normalizer.heuristic("3 BHK please", 9.0, 12.0)
        assert params.rooms.count("bedroom") == 2
        assert params.rooms.count("bathroom") == 2
        assert params.height_m == 12.0

    def test_area_and_width_phrases(self, normalizer):
        """Area and width in feet are converted; length never drops below 10 m."""
        params = normalizer.heuristic("1200 sq ft 40 ft width north facing 2bhk", 30.0, 30.0)
        assert params.width_m == 12.192
        assert params.height_m == 10.0
        assert params.orientation == "north"

    def test_length_from_area(self, normalizer):
        params = normalizer.heuristic("2000 sq ft", 10.0, 10.0)
        # 2000 sq ft = 185.805 sq m over a 10 m width
        assert params.height_m == 18.58


class TestBuildDirective:
    def test_without_rooms(self):
        params = GeneratedParameters(width_m=9.144, height_m=9.144, orientation="east", bhk=2)
        assert build_directive(params) == (
            'CALL TOOL: generate_layout_hybrid(plot_dimensions=[9.1, 9.1], orientation="east")'
        )

    def test_three_bhk_spells_out_rooms(self):
        params = GeneratedParameters(width_m=9.144, height_m=12.192, orientation="west", bhk=3)
        assert build_directive(params) == (
            "CALL TOOL: generate_layout_hybrid(plot_dimensions=[9.1, 12.2], "
            'rooms_needed=["kitchen","living_room","master_bedroom","bedroom","bedroom",'
            '"bathroom","bathroom"], orientation="west")'
        )

    def test_whole_numbers_without_decimals(self):
        params = GeneratedParameters(width_m=9.0, height_m=12.0)
        assert "plot_dimensions=[9, 12]" in build_directive(params)
