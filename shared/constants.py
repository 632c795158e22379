# Copyright 2025 Google LLC
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
# ==============================================================================

from shared.types import InspirationPhoto

# Table names
EXPENSES_TABLE = "expenses"
TASKS_TABLE = "tasks"
GUESTS_TABLE = "guests"
GALLERY_ITEMS_TABLE = "gallery_items"

DEFAULT_TOTAL_BUDGET = 25000
MIN_PASSWORD_LENGTH = 6
SIGNIN_CLOSE_DELAY_SECONDS = 1.0
SIGNUP_CLOSE_DELAY_SECONDS = 3.0
UPCOMING_PREVIEW_COUNT = 3
DEFAULT_TASK_CATEGORY = "General"

ALL_CATEGORIES = "All"
GALLERY_CATEGORIES = (
    ALL_CATEGORIES,
    "Ceremony",
    "Reception",
    "Details",
    "Florals",
    "Venue",
    "Portraits",
)

_PEXELS = "https://images.pexels.com/photos/{id}/pexels-photo-{id}.jpeg?auto=compress&cs=tinysrgb&w=800"

INSPIRATION_PHOTOS = (
    InspirationPhoto(_PEXELS.format(id=265722), "Wedding ceremony", "Ceremony"),
    InspirationPhoto(_PEXELS.format(id=1024993), "Wedding rings", "Details"),
    InspirationPhoto(_PEXELS.format(id=1729797), "Bridal bouquet", "Florals"),
    InspirationPhoto(_PEXELS.format(id=169198), "Outdoor ceremony setup", "Venue"),
    InspirationPhoto(_PEXELS.format(id=2253870), "Wedding cake", "Reception"),
    InspirationPhoto(_PEXELS.format(id=265705), "Couple portrait", "Portraits"),
    InspirationPhoto(_PEXELS.format(id=1024960), "Table setting", "Reception"),
    InspirationPhoto(_PEXELS.format(id=3014856), "First dance", "Reception"),
    InspirationPhoto(_PEXELS.format(id=1444442), "Wedding dress", "Details"),
    InspirationPhoto(_PEXELS.format(id=1616113), "Ceremony arch", "Ceremony"),
    InspirationPhoto(_PEXELS.format(id=2788488), "Champagne toast", "Reception"),
    InspirationPhoto(_PEXELS.format(id=1857075), "Wedding shoes", "Details"),
)
