from pharmadesk.domain.users.models import User
from pharmadesk.domain.medicines.models import Medicine, MedicineCategory, MedicineCategoryLink
from pharmadesk.domain.requests.models import MedicineRequest, MedicineRequestItem
