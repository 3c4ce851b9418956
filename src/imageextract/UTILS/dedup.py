# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Deduplication of image lists.
"""
from typing import Iterable, List


def deduplicate_images(all_images: Iterable[str], excluded_images: Iterable[str]) -> List[str]:
    """
    Collapses duplicates, drops empty strings and every excluded image, and
    returns what is left sorted.

    :param all_images: Image strings in any order, duplicates allowed.
    :param excluded_images: Images to remove no matter how often they appear.
    :return: Unique remaining images in ascending order.
    """
    seen = {image for image in all_images if image}
    seen.difference_update(excluded_images)
    return sorted(seen)
