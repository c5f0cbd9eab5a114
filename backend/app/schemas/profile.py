"""
Schemas Pydantic per il Profilo aziendale
Progetto: Budget Manager (Gestionale Preventivi)
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ProfileBase(BaseModel):
    """
    Schema base per il profilo.

    Attributes:
        full_name: Ragione sociale o nome
        tax_id: CPF/CNPJ
        phone: Telefono
        email: Email di contatto
        address: Indirizzo
        logo_url: URL del logo nel blob store esterno
    """
    full_name: Optional[str] = Field(None, max_length=200)
    tax_id: Optional[str] = Field(None, max_length=20)
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=300)
    logo_url: Optional[str] = Field(None, max_length=1000)


class ProfileUpdate(ProfileBase):
    """Aggiornamento parziale del profilo."""
    pass


class ProfileRead(ProfileBase):
    """Schema per la lettura del profilo."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: uuid.UUID
    created_at: datetime.datetime
    updated_at: datetime.datetime
