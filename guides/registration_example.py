"""Walk one applicant through the registration wizard and submit."""

import asyncio

from regflow import WorkflowController, get_draft_store, get_submission_service
from regflow.registry import StepKey
from regflow.sync import DraftSynchronizer

APPLICATION = {
    StepKey.PERSONAL: {
        "fullName": "Ali Al-Harbi",
        "nationalId": "1234567890",
        "dateOfBirth": "1990-05-15",
        "disabilityType": "deaf",
        "disabilityCardNumber": "DC-12345",
    },
    StepKey.PROFESSIONAL: {"educationLevel": "bachelor", "employmentStatus": "unemployed"},
    StepKey.ADDRESS: {
        "buildingNumber": "1234",
        "streetName": "King Fahd Road",
        "district": "Al Olaya",
        "city": "Riyadh",
        "postalCode": "12345",
        "additionalNumber": "5678",
    },
    StepKey.CONTACT: {
        "phone": "0501234567",
        "emergencyContactName": "Sara",
        "emergencyContactPhone": "0559876543",
        "emergencyContactRelation": "sibling",
    },
    StepKey.BRANCH: {"preferredBranchId": "branch-1"},
    StepKey.DOCUMENTS: {
        "nationalIdDocument": {"fileName": "id.pdf", "mimeType": "application/pdf", "fileSize": 120000},
        "disabilityCardDocument": {"fileName": "card.png", "mimeType": "image/png", "fileSize": 80000},
    },
}


async def main():
    """Fill every step, resuming from a stored draft when one exists."""
    sync = DraftSynchronizer(get_draft_store(), debounce_seconds=0.1)
    controller = await WorkflowController.mount("applicant-1", sync, get_submission_service())
    print(f"Resuming at step {controller.current_step} ({controller.progress().percentage}%)")

    while controller.current_step < 7:
        key = list(APPLICATION)[controller.current_step - 1]
        controller.update_document(key, APPLICATION[key])
        result = controller.advance()
        if not result.is_valid:
            print(f"Step {key.value} rejected: {result.errors}")
            return
        print(f"Completed {key.value}: {controller.progress().percentage}%")

    await sync.flush()
    receipt = await controller.submit(consent_given=True)
    print(f"Submitted. Reference: {receipt.reference_id}")


if __name__ == "__main__":
    asyncio.run(main())
